# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Exception types used throughout octopod.

Every error carries the name of the adaptor it originated from (if any) and
a human-readable message; the underlying cause is chained with `raise ... from`.
The categories are kept apart because they call for different remedies:

- `LocationError`, `ConfigurationError`: the request itself is malformed.
- `TransportError`: the backend could not be reached.
- `BackendError`: the backend ran and reported a failure.
- `ParseError`: the backend answered, but the answer could not be understood.
- `NotFoundError`, `AlreadyClosedError`: the addressed entity does not exist (any more).
"""


class OctopodError(Exception):
    """Common exception type for all octopod errors."""

    def __init__(self, message: str, adaptor_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.adaptor_name = adaptor_name

    @property
    def cause(self) -> BaseException | None:
        """The wrapped exception, if any."""
        return self.__cause__

    def __str__(self) -> str:
        if self.adaptor_name:
            return f"{self.adaptor_name} adaptor: {self.message}"
        return self.message


class LocationError(OctopodError):
    """Raised for a malformed location, a disallowed fragment or an unsupported scheme."""

    pass


class ConfigurationError(OctopodError):
    """Raised for unrecognized or invalid configuration keys."""

    pass


class InvalidJobDescriptionError(ConfigurationError):
    """Raised when a job description cannot be handled by an adaptor."""

    pass


class TransportError(OctopodError):
    """Raised when a process cannot be spawned or a connection fails."""

    pass


class ParseError(OctopodError):
    """Raised when the output of a backend cannot be understood."""

    pass


class BackendError(OctopodError):
    """Raised when a backend explicitly reports a failure."""

    pass


class NotFoundError(OctopodError):
    """Raised when an adaptor, scheduler, job, queue or file does not exist."""

    pass


class AlreadyClosedError(OctopodError):
    """Raised when a handle is used after it has been closed."""

    pass
