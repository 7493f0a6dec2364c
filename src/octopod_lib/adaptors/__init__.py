# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Backend integrations of octopod.

Each adaptor serves one family of backends selected by URI scheme and
implements the capability interfaces defined in `interface`: jobs, files
or both.
"""

from .ftp import FtpAdaptor
from .gridengine import GridEngineAdaptor
from .interface import Adaptor
from .local import LocalAdaptor


def default_adaptors() -> list[Adaptor]:
    """
    Return fresh instances of all bundled adaptors, in lookup order.
    """
    return [LocalAdaptor(), GridEngineAdaptor(), FtpAdaptor()]


__all__ = [
    "Adaptor",
    "FtpAdaptor",
    "GridEngineAdaptor",
    "LocalAdaptor",
    "default_adaptors",
]
