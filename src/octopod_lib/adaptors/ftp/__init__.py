# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from .adaptor import FtpAdaptor
from .files import FtpFiles

__all__ = [
    "FtpAdaptor",
    "FtpFiles",
]
