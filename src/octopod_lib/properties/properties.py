# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Self

from octopod_lib.core.error import ConfigurationError
from octopod_lib.core.logger import get_logger

logger = get_logger(__name__)


class Level(Enum):
    """
    Scope at which a configuration key is valid.
    """

    ENGINE = 1
    SCHEDULER = 2
    FILESYSTEM = 3

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def fromStr(cls, s: str) -> Self:
        """
        Convert a string to the corresponding Level.

        Raises:
            ConfigurationError: If the string does not name a level.
        """
        try:
            return cls[s.upper()]
        except KeyError as e:
            raise ConfigurationError(f"Unknown configuration level '{s}'.") from e


@dataclass(frozen=True)
class PropertyDescription:
    """
    Description of a configuration key recognized by an adaptor.

    Attributes:
        name (str): Full name of the key, prefixed with the adaptor name.
        level (Level): Scope at which the key may be set.
        default (str | None): Value used when the key is not set.
        description (str): Human-readable description.
        type (type): Expected type of the value (str, int, float or bool).
    """

    name: str
    level: Level
    default: str | None = None
    description: str = ""
    type: type = str


_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


class Properties(Mapping[str, str]):
    """
    Immutable, validated view of configuration values.

    Only keys described by one of the `descriptions` are kept. Values are
    validated against the declared type on construction.

    Args:
        descriptions (Iterable[PropertyDescription]): Keys recognized by the owner.
        values (Mapping[str, str] | None): The values provided by the user.
        level (Level | None): If set, only keys of this level are accepted.
        strict (bool): If True, unrecognized keys raise `ConfigurationError`;
            otherwise they are dropped.
        adaptor_name (str | None): Name of the adaptor to report in errors.

    Raises:
        ConfigurationError: If a key is unrecognized (strict only), set at the wrong
            level (strict only), or has a value of the wrong type.
    """

    def __init__(
        self,
        descriptions: tuple[PropertyDescription, ...] | list[PropertyDescription] = (),
        values: Mapping[str, str] | None = None,
        level: Level | None = None,
        strict: bool = True,
        adaptor_name: str | None = None,
    ):
        self._descriptions = {d.name: d for d in descriptions}
        self._adaptor_name = adaptor_name
        self._values: dict[str, str] = {}

        for key, value in (values or {}).items():
            description = self._descriptions.get(key)

            if description is None:
                if strict:
                    raise ConfigurationError(
                        f"Unknown property '{key}'.", self._adaptor_name
                    )
                logger.debug(f"Ignoring unknown property '{key}'.")
                continue

            if level is not None and description.level != level:
                if strict:
                    raise ConfigurationError(
                        f"Property '{key}' can only be set at the {description.level} level, not at the {level} level.",
                        self._adaptor_name,
                    )
                logger.debug(f"Ignoring property '{key}' set at the wrong level.")
                continue

            self._values[key] = str(value)
            self._convert(description, self._values[key])

    @classmethod
    def merge(
        cls,
        descriptions: tuple[PropertyDescription, ...] | list[PropertyDescription],
        *sources: Mapping[str, str] | None,
        level: Level | None = None,
        strict: bool = True,
        adaptor_name: str | None = None,
    ) -> Self:
        """
        Combine several sources of values into one Properties object.

        Later sources take precedence over earlier ones. `None` sources are skipped.

        Raises:
            ConfigurationError: See the constructor.
        """
        values: dict[str, str] = {}
        for source in sources:
            if source:
                values.update(source)

        return cls(descriptions, values, level, strict, adaptor_name)

    def filter(self, level: Level) -> Self:
        """
        Return the properties of the given level only.
        """
        descriptions = [d for d in self._descriptions.values() if d.level == level]
        values = {
            k: v
            for k, v in self._values.items()
            if self._descriptions[k].level == level
        }
        return type(self)(descriptions, values, level, True, self._adaptor_name)

    def getProperty(self, name: str) -> str | None:
        """
        Return the value of `name`, falling back to its default.

        Raises:
            ConfigurationError: If `name` is not a recognized key.
        """
        description = self._getDescription(name)
        return self._values.get(name, description.default)

    def getInteger(self, name: str) -> int | None:
        return self._typed(name, int)

    def getFloat(self, name: str) -> float | None:
        return self._typed(name, float)

    def getBoolean(self, name: str) -> bool | None:
        return self._typed(name, bool)

    def isSet(self, name: str) -> bool:
        """Return True if `name` was set explicitly."""
        return name in self._values

    def toDict(self) -> dict[str, str]:
        """Return the explicitly set values together with the defaults of all other keys."""
        result = {
            name: d.default
            for name, d in self._descriptions.items()
            if d.default is not None
        }
        result.update(self._values)
        return result

    def _typed(self, name: str, expected: type):
        description = self._getDescription(name)
        if description.type is not expected:
            raise ConfigurationError(
                f"Property '{name}' is of type '{description.type.__name__}', not '{expected.__name__}'.",
                self._adaptor_name,
            )

        value = self.getProperty(name)
        if value is None:
            return None
        return self._convert(description, value)

    def _getDescription(self, name: str) -> PropertyDescription:
        try:
            return self._descriptions[name]
        except KeyError as e:
            raise ConfigurationError(
                f"Unknown property '{name}'.", self._adaptor_name
            ) from e

    def _convert(self, description: PropertyDescription, value: str):
        """
        Convert `value` to the type declared by `description`.

        Raises:
            ConfigurationError: If the conversion fails.
        """
        if description.type is bool:
            normalized = value.strip().lower()
            if normalized in _TRUE_VALUES:
                return True
            if normalized in _FALSE_VALUES:
                return False
        else:
            try:
                return description.type(value)
            except ValueError:
                pass

        raise ConfigurationError(
            f"Property '{description.name}' expects a value of type '{description.type.__name__}', got '{value}'.",
            self._adaptor_name,
        )

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Properties({self._values})"
