# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging setup for the corpus index.

Every record is written to the log file as one JSON object. Components attach
machine-readable fields (index statistics after a rebuild, cycle counts) with
``structured_fields``:

    logger.info(stats.to_summary(), extra=structured_fields(**stats.to_dict()))

Those fields land as top-level keys of the JSON object. They never replace the
core keys (timestamp, level, logger, message, exception).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_DIRNAME = ".corpus_index_logs"
LOG_FILE_PREFIX = "corpus_index_"

# LogRecord attribute carrying structured fields
STRUCTURED_FIELDS_ATTR = "structured_fields"

_CORE_KEYS = frozenset({"timestamp", "level", "logger", "message", "exception"})


def structured_fields(**fields: Any) -> Dict[str, Dict[str, Any]]:
    """Build the ``extra`` mapping that StructuredFormatter merges into JSON."""
    return {STRUCTURED_FIELDS_ATTR: fields}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        fields = getattr(record, STRUCTURED_FIELDS_ATTR, None)
        if isinstance(fields, dict):
            for key, value in fields.items():
                if key not in _CORE_KEYS:
                    log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
) -> Path:
    """Set up structured logging for the corpus index.

    Args:
        log_dir: Directory for log files. If None, uses .corpus_index_logs/
        log_level: Logging level (default: INFO)
        console_output: Also log human-readable lines to stderr (default: True).
            stdout is never used so the stdio MCP transport stays clean.

    Returns:
        Path of the JSON log file (one file per UTC day).
    """
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIRNAME

    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Close handlers from a previous setup before replacing them
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    log_file = log_dir / f"{LOG_FILE_PREFIX}{datetime.now(timezone.utc).strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(console_handler)

    logging.getLogger(__name__).info(f"Corpus index logging initialized: {log_file}")
    return log_file
