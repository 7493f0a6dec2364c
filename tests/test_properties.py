# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import pytest

from octopod_lib.core.error import ConfigurationError
from octopod_lib.properties import Level, Properties, PropertyDescription

DESCRIPTIONS = (
    PropertyDescription(
        "demo.timeout", Level.SCHEDULER, "60", "Timeout in seconds.", int
    ),
    PropertyDescription("demo.ratio", Level.SCHEDULER, None, "A ratio.", float),
    PropertyDescription("demo.passive", Level.FILESYSTEM, "true", "Passive mode.", bool),
    PropertyDescription("demo.name", Level.ENGINE, None, "A name."),
)


def test_level_str_and_from_str():
    assert str(Level.SCHEDULER) == "scheduler"
    assert Level.fromStr("FileSystem") is Level.FILESYSTEM


def test_level_from_str_invalid_raises():
    with pytest.raises(ConfigurationError, match="Unknown configuration level"):
        Level.fromStr("cluster")


def test_properties_defaults_and_typed_getters():
    props = Properties(DESCRIPTIONS)

    assert props.getInteger("demo.timeout") == 60
    assert props.getBoolean("demo.passive") is True
    assert props.getFloat("demo.ratio") is None
    assert props.getProperty("demo.name") is None
    assert not props.isSet("demo.timeout")
    assert len(props) == 0


def test_properties_explicit_values():
    props = Properties(
        DESCRIPTIONS, {"demo.timeout": "5", "demo.ratio": "0.5", "demo.passive": "No"}
    )

    assert props.getInteger("demo.timeout") == 5
    assert props.getFloat("demo.ratio") == 0.5
    assert props.getBoolean("demo.passive") is False
    assert props.isSet("demo.timeout")
    assert dict(props) == {
        "demo.timeout": "5",
        "demo.ratio": "0.5",
        "demo.passive": "No",
    }


def test_properties_unknown_key_strict_raises():
    with pytest.raises(ConfigurationError, match="Unknown property 'demo.bogus'") as e:
        Properties(DESCRIPTIONS, {"demo.bogus": "1"}, adaptor_name="demo")

    assert e.value.adaptor_name == "demo"


def test_properties_unknown_key_lenient_dropped():
    props = Properties(DESCRIPTIONS, {"demo.bogus": "1"}, strict=False)

    assert "demo.bogus" not in props
    assert len(props) == 0


def test_properties_wrong_level_strict_raises():
    with pytest.raises(ConfigurationError, match="filesystem level"):
        Properties(DESCRIPTIONS, {"demo.passive": "true"}, level=Level.SCHEDULER)


def test_properties_wrong_level_lenient_dropped():
    props = Properties(
        DESCRIPTIONS, {"demo.passive": "false"}, level=Level.SCHEDULER, strict=False
    )

    assert not props.isSet("demo.passive")


@pytest.mark.parametrize(
    "key, value",
    [("demo.timeout", "soon"), ("demo.ratio", "half"), ("demo.passive", "maybe")],
)
def test_properties_invalid_typed_value_raises(key, value):
    with pytest.raises(ConfigurationError, match="expects a value of type"):
        Properties(DESCRIPTIONS, {key: value})


def test_properties_typed_getter_wrong_type_raises():
    with pytest.raises(ConfigurationError, match="is of type 'int'"):
        Properties(DESCRIPTIONS).getBoolean("demo.timeout")


def test_properties_get_unknown_raises():
    with pytest.raises(ConfigurationError):
        Properties(DESCRIPTIONS).getProperty("demo.bogus")


def test_properties_merge_later_sources_win():
    props = Properties.merge(
        DESCRIPTIONS,
        {"demo.timeout": "10", "demo.name": "engine"},
        None,
        {"demo.timeout": "20"},
    )

    assert props.getInteger("demo.timeout") == 20
    assert props.getProperty("demo.name") == "engine"


def test_properties_merge_validates_result():
    with pytest.raises(ConfigurationError):
        Properties.merge(DESCRIPTIONS, {"demo.bogus": "x"}, strict=True)


def test_properties_filter_by_level():
    props = Properties(DESCRIPTIONS, {"demo.timeout": "5", "demo.passive": "off"})
    filtered = props.filter(Level.FILESYSTEM)

    assert dict(filtered) == {"demo.passive": "off"}
    with pytest.raises(ConfigurationError):
        filtered.getProperty("demo.timeout")


def test_properties_to_dict_includes_defaults():
    props = Properties(DESCRIPTIONS, {"demo.ratio": "1.5"})

    assert props.toDict() == {
        "demo.timeout": "60",
        "demo.passive": "true",
        "demo.ratio": "1.5",
    }
