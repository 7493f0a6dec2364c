# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Capability interfaces every adaptor is built from.
"""

from .adaptor import Adaptor
from .files import FilesInterface
from .jobs import JobsInterface
from .registry import HandleRegistry

__all__ = [
    "Adaptor",
    "FilesInterface",
    "HandleRegistry",
    "JobsInterface",
]
