"""
Bidirectional mapping between XML text and a structured document.

Document shape (no schema required):
- Element with child elements or attributes -> dict
    - '@attributes': {name: value}   (only when the element has attributes)
    - '#text': 'trimmed text'        (only when non-empty)
    - tag -> child, or list of children when the tag repeats
- Element with neither -> trimmed text ('' for an empty element)

The outermost tag is returned separately as the root name and the body is
wrapped as {root_name: body}, so every document path starts with the root.

Encoding is the inverse: decode(encode(doc, root)) reproduces doc for
anything decode produced, up to whitespace layout.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union
from xml.sax.saxutils import escape

from lxml import etree

from tally_xml_editor.exceptions import DecodeError

logger = logging.getLogger(__name__)

TEXT_KEY = '#text'
ATTRIBUTES_KEY = '@attributes'
RESERVED_KEYS = (ATTRIBUTES_KEY, TEXT_KEY)

XML_NAMESPACE = 'http://www.w3.org/XML/1998/namespace'

# Text input may declare any encoding; lxml rejects str input that declares one
_XML_DECLARATION_RE = re.compile(r'\A\s*<\?xml[^>]*\?>')

# escape() covers & < >; quotes are added, and CR since parsers normalize it away
_TEXT_ENTITIES = {'"': '&quot;', "'": '&apos;', '\r': '&#13;'}

# Attribute values also lose literal newlines and tabs to normalization
_ATTRIBUTE_ENTITIES = {**_TEXT_ENTITIES, '\n': '&#10;', '\t': '&#9;'}


def _make_parser() -> etree.XMLParser:
    """Strict parser: no recovery, no entity expansion, no network."""
    return etree.XMLParser(
        recover=False,
        resolve_entities=False,
        remove_comments=True,
        remove_pis=True,
        huge_tree=True,
        no_network=True
    )


def escape_text(value: Any) -> str:
    """
    Escape the five XML-reserved characters, and carriage returns.

    Example:
        >>> escape_text('A & B <"x">')
        'A &amp; B &lt;&quot;x&quot;&gt;'
    """
    return escape(str(value), _TEXT_ENTITIES)


def escape_attribute(value: Any) -> str:
    """
    Escape an attribute value so it survives attribute normalization.

    Same as escape_text(), plus newlines and tabs as character references.
    """
    return escape(str(value), _ATTRIBUTE_ENTITIES)


# === Decoding ===

def _local_name(name: str) -> str:
    return etree.QName(name).localname if name.startswith('{') else name


def _tag_name(element: etree._Element) -> str:
    """Tag as written in the source, prefix included."""
    local = _local_name(element.tag)
    return f"{element.prefix}:{local}" if element.prefix else local


def _attribute_name(element: etree._Element, name: str) -> str:
    if not name.startswith('{'):
        return name
    qname = etree.QName(name)
    if qname.namespace == XML_NAMESPACE:
        return f"xml:{qname.localname}"
    for prefix, uri in element.nsmap.items():
        if prefix and uri == qname.namespace:
            return f"{prefix}:{qname.localname}"
    return qname.localname


def _collect_attributes(element: etree._Element) -> Dict[str, str]:
    """
    Attributes of ``element``, preceded by the namespace declarations it
    introduces (so prefixed tags survive re-encoding).
    """
    attributes = {}

    parent = element.getparent()
    inherited = parent.nsmap if parent is not None else {}
    for prefix, uri in element.nsmap.items():
        if inherited.get(prefix) != uri:
            attributes['xmlns' if prefix is None else f"xmlns:{prefix}"] = uri

    for name, value in element.attrib.items():
        attributes[_attribute_name(element, name)] = value
    return attributes


def _decode_node(node: Any) -> Any:
    """Decode one child node; anything that is not an element decodes to None."""
    if not isinstance(node.tag, str):
        return None
    return _decode_element(node)


def _decode_element(element: etree._Element) -> Any:
    attributes = _collect_attributes(element)

    groups: Dict[str, List[etree._Element]] = {}
    fragments = []
    if element.text and element.text.strip():
        fragments.append(element.text.strip())

    for child in element:
        if isinstance(child.tag, str):
            groups.setdefault(_tag_name(child), []).append(child)
        # Tails follow comments and entities too
        if child.tail and child.tail.strip():
            fragments.append(child.tail.strip())

    text = ''.join(fragments)

    if not groups and not attributes:
        return text

    node: Dict[str, Any] = {}
    if attributes:
        node[ATTRIBUTES_KEY] = attributes
    if text:
        node[TEXT_KEY] = text

    for name, children in groups.items():
        decoded = [value for value in map(_decode_node, children) if value is not None]
        if not decoded:
            continue
        node[name] = decoded[0] if len(decoded) == 1 else decoded

    return node


def decode(text: Union[str, bytes]) -> Tuple[Dict[str, Any], str]:
    """
    Parse XML text into a structured document.

    Args:
        text: Sanitized XML text (bytes are handed to lxml as-is, so their
            declared encoding is honoured)

    Returns:
        Tuple of (document, root_name) where document is {root_name: body}

    Raises:
        DecodeError: If the text is not well-formed XML

    Example:
        >>> doc, root = decode('<ROOT><ITEM NAME="a">1</ITEM><ITEM NAME="a">2</ITEM></ROOT>')
        >>> root
        'ROOT'
        >>> doc['ROOT']['ITEM'][1]
        {'@attributes': {'NAME': 'a'}, '#text': '2'}
    """
    if isinstance(text, (bytes, bytearray)):
        source = bytes(text)
        is_empty = not source.strip()
    else:
        source = _XML_DECLARATION_RE.sub('', text, count=1)
        is_empty = not source.strip()

    if is_empty:
        raise DecodeError("XML parsing error: document is empty")

    try:
        root = etree.fromstring(source, _make_parser())
    except etree.XMLSyntaxError as e:
        logger.error(f"XML parsing failed: {e}")
        raise DecodeError(
            f"XML parsing error: {e}",
            line=getattr(e, 'lineno', None),
            column=getattr(e, 'offset', None)
        ) from e

    root_name = _tag_name(root)
    body = _decode_element(root)
    logger.debug(f"Decoded document with root <{root_name}>")
    return {root_name: body}, root_name


# === Encoding ===

def _unwrap(document: Any, root_name: str) -> Any:
    """Body of a {root_name: body} document; anything else is already a body."""
    if isinstance(document, dict) and len(document) == 1:
        key = next(iter(document))
        if str(key).lower() == root_name.lower():
            return document[key]
    return document


def _format_attributes(attributes: Any) -> str:
    if not isinstance(attributes, dict):
        return ''
    return ''.join(
        f' {name}="{escape_attribute(value)}"'
        for name, value in attributes.items()
        if value is not None
    )


def _emit(out: List[str], value: Any, tag: str, indent: Optional[int], depth: int) -> None:
    """Append the XML for ``value`` under ``tag`` to ``out``."""
    if value is None:
        return

    if isinstance(value, list):
        for item in value:
            _emit(out, item, tag, indent, depth)
        return

    pad = '\n' + ' ' * (indent * depth) if indent is not None and depth else ''

    if isinstance(value, dict):
        opening = f"<{tag}{_format_attributes(value.get(ATTRIBUTES_KEY))}"
        text = value.get(TEXT_KEY)
        has_text = text is not None and str(text) != ''

        inner: List[str] = []
        for key, child in value.items():
            if key in RESERVED_KEYS:
                continue
            _emit(inner, child, key, indent, depth + 1)

        if not has_text and not inner:
            out.append(f"{pad}{opening}/>")
            return

        out.append(f"{pad}{opening}>")
        if has_text:
            out.append(escape_text(text))
        out.extend(inner)
        closing_pad = pad or ('\n' if indent is not None and depth == 0 else '')
        out.append(f"{closing_pad if inner else ''}</{tag}>")
        return

    if str(value) == '':
        out.append(f"{pad}<{tag}/>")
    else:
        out.append(f"{pad}<{tag}>{escape_text(value)}</{tag}>")


def encode(
    document: Any,
    root_name: str,
    indent: Optional[int] = None,
    declaration: Optional[str] = None
) -> str:
    """
    Serialize a structured document back to XML text.

    Args:
        document: Document as produced by decode() ({root_name: body})
        root_name: Tag of the outermost element
        indent: Spaces per nesting level (None writes elements on one line)
        declaration: XML declaration line. Defaults to the configured one.

    Returns:
        XML text starting with the declaration

    Example:
        >>> encode({'ROOT': {'ITEM': ['1', '2']}}, 'ROOT')
        '<?xml version="1.0" encoding="UTF-8"?>\\n<ROOT><ITEM>1</ITEM><ITEM>2</ITEM></ROOT>'
    """
    if declaration is None:
        from tally_xml_editor.config import get_config
        declaration = get_config().xml_declaration

    body = _unwrap(document, root_name)
    out: List[str] = []
    _emit(out, body, root_name, indent, 0)
    return declaration + '\n' + ''.join(out)


def encode_bytes(document: Any, root_name: str, indent: Optional[int] = None) -> bytes:
    """UTF-8 bytes of encode()."""
    return encode(document, root_name, indent=indent).encode('utf-8')
