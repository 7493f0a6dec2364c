# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from .adaptor import LocalAdaptor
from .files import LocalFiles
from .jobs import LocalJobs

__all__ = [
    "LocalAdaptor",
    "LocalFiles",
    "LocalJobs",
]
