# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for corpus index tests."""

from typing import List

import pytest

from corpus_index.models import SourceDocument
from corpus_index.search_index import SearchIndex


@pytest.fixture
def logger_docs() -> List[SourceDocument]:
    """Two documents that mention Logger in content only."""
    return [
        SourceDocument(
            path="src/com/x/A.java",
            content="class A uses Logger",
            package="com.x",
            type_names=["A"],
        ),
        SourceDocument(
            path="src/com/y/B.java",
            content="class B uses Logger",
            package="com.y",
            type_names=["B"],
        ),
    ]


@pytest.fixture
def service_docs() -> List[SourceDocument]:
    """A small Java-like corpus with imports between files."""
    return [
        SourceDocument(
            path="src/com/shop/OrderService.java",
            content=(
                "package com.shop;\n"
                "import com.shop.model.Order;\n"
                "import java.util.List;\n"
                "public class OrderService {\n"
                "    public Order placeOrder(List<String> items) { return new Order(items); }\n"
                "}\n"
            ),
            package="com.shop",
            imports=["com.shop.model.Order", "java.util.List"],
            type_names=["OrderService"],
            method_names=["placeOrder"],
        ),
        SourceDocument(
            path="src/com/shop/model/Order.java",
            content=(
                "package com.shop.model;\n"
                "import java.util.List;\n"
                "public class Order {\n"
                "    public Order(List<String> items) {}\n"
                "    public int total() { return 0; }\n"
                "}\n"
            ),
            package="com.shop.model",
            imports=["java.util.List"],
            type_names=["Order"],
            method_names=["total"],
        ),
        SourceDocument(
            path="src/com/shop/util/Strings.java",
            content=(
                "package com.shop.util;\n"
                "public final class Strings {\n"
                "    public static boolean isBlank(String s) { return s == null; }\n"
                "}\n"
            ),
            package="com.shop.util",
            type_names=["Strings"],
            method_names=["isBlank"],
        ),
    ]


@pytest.fixture
def index(service_docs: List[SourceDocument]) -> SearchIndex:
    """SearchIndex pre-loaded with service_docs."""
    search_index = SearchIndex()
    search_index.rebuild(service_docs)
    return search_index
