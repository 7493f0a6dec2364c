# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Parsers turning raw backend output into identifiers and attribute maps.

The parsers depend on nothing but the error types; backend-specific
patterns and tag names are supplied by the adaptors.
"""

from .structured import parse_document, parse_entities
from .unstructured import LineMatch, TextParser, parse_key_value_lines

__all__ = [
    "LineMatch",
    "TextParser",
    "parse_document",
    "parse_entities",
    "parse_key_value_lines",
]
