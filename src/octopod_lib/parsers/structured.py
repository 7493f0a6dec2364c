# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Parsing of machine-readable (XML) command output.

The parser is deliberately lenient about content and strict about structure:
attributes it does not know are skipped, so that newer backend versions
adding fields do not break it, but a document that is not well-formed or
that has an unexpected root element is rejected.
"""

from collections.abc import Iterable
from xml.etree.ElementTree import Element
from xml.etree.ElementTree import ParseError as XmlParseError

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from octopod_lib.core.error import ParseError
from octopod_lib.core.logger import get_logger

logger = get_logger(__name__)


def _local_name(tag: str) -> str:
    """Strip the namespace from an element tag."""
    return tag.rsplit("}", 1)[-1]


def parse_document(text: str, root_tag: str, adaptor_name: str | None = None) -> Element:
    """
    Parse an XML document and check the name of its root element.

    Args:
        text (str): The XML document.
        root_tag (str): Expected name of the root element.
        adaptor_name (str | None): Name of the adaptor to report in errors.

    Returns:
        Element: The root element of the document.

    Raises:
        ParseError: If the document is malformed, forbidden by the XML security
            policy, or its root element is not `root_tag`.
    """
    try:
        root = ET.fromstring(text)
    except (XmlParseError, DefusedXmlException) as e:
        raise ParseError(
            f"Could not parse XML output: {e}.\nOutput was:\n{text}", adaptor_name
        ) from e

    if _local_name(root.tag) != root_tag:
        raise ParseError(
            f"Expected XML root element '{root_tag}', got '{_local_name(root.tag)}'.",
            adaptor_name,
        )

    return root


def parse_entities(
    text: str,
    root_tag: str,
    entity_tag: str,
    id_tag: str,
    attributes: Iterable[str] | None = None,
    adaptor_name: str | None = None,
) -> dict[str, dict[str, str]]:
    """
    Build a mapping from entity identifier to the attributes of the entity.

    Entities are all elements named `entity_tag`, at any depth below the root.
    The attributes of an entity are the XML attributes of its element and the
    text of its direct children; a child element takes precedence over an
    XML attribute of the same name. Children without text are stored as
    empty strings.

    Args:
        text (str): The XML document.
        root_tag (str): Expected name of the root element.
        entity_tag (str): Name of the elements describing one entity.
        id_tag (str): Name of the attribute holding the identifier of an entity.
        attributes (Iterable[str] | None): If given, only these attributes are kept
            (the identifier is always kept).
        adaptor_name (str | None): Name of the adaptor to report in errors.

    Returns:
        dict[str, dict[str, str]]: Attributes of each entity, keyed by its identifier.

    Raises:
        ParseError: If the document is malformed or an entity has no identifier.
    """
    root = parse_document(text, root_tag, adaptor_name)
    wanted = set(attributes) | {id_tag} if attributes is not None else None

    result: dict[str, dict[str, str]] = {}
    for element in root.iter():
        if _local_name(element.tag) != entity_tag:
            continue

        info = {_local_name(k): v for k, v in element.attrib.items()}
        for child in element:
            info[_local_name(child.tag)] = (child.text or "").strip()

        identifier = info.get(id_tag)
        if not identifier:
            raise ParseError(
                f"Element '{entity_tag}' does not contain an identifier '{id_tag}'.",
                adaptor_name,
            )

        if wanted is not None:
            info = {k: v for k, v in info.items() if k in wanted}

        if identifier in result:
            logger.debug(f"Entity '{identifier}' reported more than once. Merging.")
            result[identifier].update(info)
        else:
            result[identifier] = info

    logger.debug(f"Parsed {len(result)} '{entity_tag}' entities.")
    return result
