# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
The dispatch engine routing job and file operations to adaptors.
"""

from .engine import Engine
from .files import FilesEngine
from .jobs import JobsEngine

__all__ = [
    "Engine",
    "FilesEngine",
    "JobsEngine",
]
