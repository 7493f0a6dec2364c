# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Filesystem handles and the path algebra used to address files on every backend.
"""

from .filesystem import FileAttributes, FilePath, FileSystem
from .pathname import DEFAULT_SEPARATOR, Pathname

__all__ = [
    "DEFAULT_SEPARATOR",
    "FileAttributes",
    "FilePath",
    "FileSystem",
    "Pathname",
]
