# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Configuration surface of the adaptors.

Every adaptor declares the keys it recognizes as `PropertyDescription`s,
each valid at one `Level` (engine, scheduler or filesystem). User-provided
values are validated into immutable `Properties` views.
"""

from .properties import Level, Properties, PropertyDescription

__all__ = [
    "Level",
    "Properties",
    "PropertyDescription",
]
