# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Credentials passed to adaptors when schedulers and filesystems are created.
"""

from .credential import (
    Credential,
    DefaultCredential,
    PasswordCredential,
    combine_credentials,
)

__all__ = [
    "Credential",
    "DefaultCredential",
    "PasswordCredential",
    "combine_credentials",
]
