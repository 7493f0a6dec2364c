# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credential:
    """
    Base class of all credentials.

    Credentials are immutable values; adaptors decide how to use them.
    """

    pass


@dataclass(frozen=True)
class DefaultCredential(Credential):
    """
    Use whatever the environment provides: the ssh agent and keys of the
    current user, or an anonymous login for FTP.

    A user given in the location always takes precedence over `username`.

    Attributes:
        username (str | None): User name used when the location names none.
    """

    username: str | None = None


@dataclass(frozen=True)
class PasswordCredential(Credential):
    """
    A user name and password pair.

    The password is never shown in the representation of the credential.
    """

    username: str
    password: str = field(repr=False)


def combine_credentials(
    default: Credential | None, explicit: Credential | None
) -> Credential:
    """
    Return `explicit` if it is set, otherwise `default`, otherwise a `DefaultCredential`.
    """
    if explicit is not None:
        return explicit
    if default is not None:
        return default
    return DefaultCredential()
