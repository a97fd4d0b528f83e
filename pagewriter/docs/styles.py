"""Inline-style parsing and effective-style resolution for page markup.

Page content is HTML held as lxml elements. The effective style of a text
leaf is its inherited style: tag defaults and inline ``style`` attributes
applied from the content root down to the leaf's parent element.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from lxml import etree, html

FLATTEN_PROPERTIES = (
    "font-family",
    "font-size",
    "font-weight",
    "font-style",
    "color",
    "letter-spacing",
    "line-height",
    "text-decoration",
)

BASE_FONT_SIZE_PX = 16.0

FONT_RELATIVE_LENGTHS = frozenset({"letter-spacing", "line-height"})
RELATIVE_UNITS = frozenset({"em", "rem", "%"})

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "div", "dd", "dl", "dt", "figcaption",
    "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header", "li", "main",
    "nav", "ol", "p", "pre", "section", "table", "tr", "ul",
})

SKIP_TAGS = frozenset({"script", "style", "head", "title", "meta"})

_HEADING_SIZES = {"h1": "2em", "h2": "1.5em", "h3": "1.17em", "h4": "1em", "h5": "0.83em", "h6": "0.67em"}

TAG_DEFAULTS: Dict[str, Dict[str, str]] = {
    "b": {"font-weight": "bold"},
    "strong": {"font-weight": "bold"},
    "i": {"font-style": "italic"},
    "em": {"font-style": "italic"},
    "cite": {"font-style": "italic"},
    "u": {"text-decoration": "underline"},
    "ins": {"text-decoration": "underline"},
    "s": {"text-decoration": "line-through"},
    "strike": {"text-decoration": "line-through"},
    "del": {"text-decoration": "line-through"},
    "code": {"font-family": "monospace"},
    "pre": {"font-family": "monospace"},
    "kbd": {"font-family": "monospace"},
}
for _tag, _size in _HEADING_SIZES.items():
    TAG_DEFAULTS[_tag] = {"font-size": _size, "font-weight": "bold"}

_LENGTH_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(px|pt|em|rem|%)?\s*$", re.IGNORECASE)


def parse_style(value: Optional[str]) -> Dict[str, str]:
    """Parse an inline ``style`` attribute into an ordered property dict."""
    props: Dict[str, str] = {}
    for decl in (value or "").split(";"):
        if ":" not in decl:
            continue
        name, _, val = decl.partition(":")
        name = name.strip().lower()
        val = val.strip()
        if name and val:
            props[name] = val
    return props


def serialize_style(props: Dict[str, str]) -> str:
    return "; ".join(f"{k}:{v}" for k, v in props.items() if v)


def parse_fragment(markup: str) -> html.HtmlElement:
    """Parse page markup into its single root element.

    Markup that is empty, plain text, or has several top-level nodes is
    wrapped in a ``div`` so callers always get one root.
    """
    if not markup or not markup.strip():
        return html.Element("div")
    try:
        return html.fragment_fromstring(markup)
    except etree.ParserError:
        return html.fragment_fromstring(markup, create_parent="div")


def to_markup(element: html.HtmlElement) -> str:
    return html.tostring(element, encoding="unicode")


def length_px(value: str, parent_px: float) -> Optional[float]:
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    number = float(m.group(1))
    unit = (m.group(2) or "px").lower()
    if unit == "px":
        return number
    if unit == "pt":
        return number * 4.0 / 3.0
    if unit == "em":
        return number * parent_px
    if unit == "rem":
        return number * BASE_FONT_SIZE_PX
    return number * parent_px / 100.0


def format_px(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text}px"


def font_size_px(style: Dict[str, str], default: float = BASE_FONT_SIZE_PX) -> float:
    """Pixel font size from a resolved style, or ``default`` when absent/unparseable."""
    value = style.get("font-size")
    if not value:
        return default
    px = length_px(value, default)
    return px if px and px > 0 else default


def _is_relative(value: str) -> bool:
    m = _LENGTH_RE.match(value)
    return bool(m and m.group(2) and m.group(2).lower() in RELATIVE_UNITS)


def _apply(resolved: Dict[str, str], props: Dict[str, str], parent_px: float) -> float:
    """Merge ``props`` into ``resolved`` and return the new font size in px."""
    if "text-decoration-line" in props and "text-decoration" not in props:
        props = {**props, "text-decoration": props["text-decoration-line"]}
    for name in FLATTEN_PROPERTIES:
        value = props.get(name)
        if not value or value.lower() == "inherit":
            continue
        if name == "font-size":
            px = length_px(value, parent_px)
            if px is not None:
                resolved[name] = format_px(px)
                parent_px = px
                continue
        elif name in FONT_RELATIVE_LENGTHS and _is_relative(value):
            # inherited as the length computed here, not re-resolved per descendant
            resolved[name] = format_px(length_px(value, parent_px))
            continue
        resolved[name] = value
    return parent_px


def ancestry(element: etree._Element) -> List[etree._Element]:
    """Return ``element`` and its ancestors, root first."""
    chain: List[etree._Element] = []
    node: Optional[etree._Element] = element
    while node is not None:
        chain.append(node)
        node = node.getparent()
    chain.reverse()
    return chain


def resolve_effective_style(element: etree._Element) -> Dict[str, str]:
    """Compute the inherited style in effect for text whose parent is ``element``.

    Only properties from ``FLATTEN_PROPERTIES`` that resolve to a non-empty
    value are returned, in that fixed order.
    """
    resolved: Dict[str, str] = {}
    current_px = BASE_FONT_SIZE_PX
    for node in ancestry(element):
        if not isinstance(node.tag, str):
            continue
        tag = node.tag.lower()
        if tag in TAG_DEFAULTS:
            current_px = _apply(resolved, TAG_DEFAULTS[tag], current_px)
        current_px = _apply(resolved, parse_style(node.get("style")), current_px)
    return {name: resolved[name] for name in FLATTEN_PROPERTIES if resolved.get(name)}
