"""Style flattening: collapse nested, inherited styling into explicit runs.

Every non-empty text leaf of a page becomes one ``<span>`` that carries
its resolved style inline, so the page renders the same without relying on
inheritance. Flattening an already flat page yields the same runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List

from lxml import etree, html

from pagewriter.docs.model import StyleRun
from pagewriter.docs.styles import (
    BLOCK_TAGS,
    FLATTEN_PROPERTIES,
    SKIP_TAGS,
    parse_fragment,
    serialize_style,
    to_markup,
)

StyleResolver = Callable[[etree._Element], Dict[str, str]]


@dataclass
class TextLeaf:
    text: str
    parent: etree._Element


@dataclass
class Block:
    """Consecutive text leaves that render on the same line box run."""

    owner: etree._Element
    leaves: List[TextLeaf] = field(default_factory=list)

    @property
    def tag(self) -> str:
        return self.owner.tag.lower() if isinstance(self.owner.tag, str) else ""

    @property
    def text(self) -> str:
        return "".join(leaf.text for leaf in self.leaves)


def _is_element(node: etree._Element) -> bool:
    return isinstance(node.tag, str)


def iter_text_leaves(root: etree._Element) -> Iterator[TextLeaf]:
    """Yield every text leaf under ``root`` in document order."""
    if root.text:
        yield TextLeaf(root.text, root)
    for child in root:
        if _is_element(child) and child.tag.lower() not in SKIP_TAGS:
            yield from iter_text_leaves(child)
        if child.tail:
            yield TextLeaf(child.tail, root)


def iter_blocks(root: etree._Element) -> List[Block]:
    """Group the text leaves of ``root`` into blocks split at block elements and ``<br>``."""
    blocks: List[Block] = []
    pending: List[TextLeaf] = []

    def flush(owner: etree._Element) -> None:
        nonlocal pending
        if any(leaf.text.strip() for leaf in pending):
            blocks.append(Block(owner, pending))
        pending = []

    def walk(el: etree._Element, owner: etree._Element) -> None:
        if el.text:
            pending.append(TextLeaf(el.text, el))
        for child in el:
            if _is_element(child):
                tag = child.tag.lower()
                if tag == "br":
                    flush(owner)
                elif tag in BLOCK_TAGS:
                    flush(owner)
                    walk(child, child)
                    flush(child)
                elif tag not in SKIP_TAGS:
                    walk(child, owner)
            if child.tail:
                pending.append(TextLeaf(child.tail, el))

    walk(root, root)
    flush(root)
    return blocks


def _resolve_run(leaf: TextLeaf, resolve: StyleResolver) -> StyleRun:
    resolved = resolve(leaf.parent)
    style = {name: resolved[name] for name in FLATTEN_PROPERTIES if resolved.get(name)}
    return StyleRun(text=leaf.text, style=style)


def _collect_runs(root: etree._Element, resolve: StyleResolver) -> List[StyleRun]:
    return [_resolve_run(leaf, resolve) for leaf in iter_text_leaves(root) if leaf.text.strip()]


def flatten_runs(markup: str, resolve: StyleResolver) -> List[StyleRun]:
    """Return the style runs of ``markup`` without modifying it."""
    return _collect_runs(parse_fragment(markup), resolve)


def _clear_children(root: etree._Element) -> None:
    root.text = None
    for child in list(root):
        root.remove(child)


def _append_runs(root: etree._Element, runs: List[StyleRun]) -> None:
    for run in runs:
        span = html.Element("span")
        style = serialize_style(run.style)
        if style:
            span.set("style", style)
        span.text = run.text
        root.append(span)


def runs_to_markup(root_markup: str, runs: List[StyleRun]) -> str:
    """Replace the children of ``root_markup``'s root with one span per run."""
    root = parse_fragment(root_markup)
    _clear_children(root)
    _append_runs(root, runs)
    return to_markup(root)


def flatten_markup(markup: str, resolve: StyleResolver) -> str:
    """Rewrite ``markup`` as a flat sequence of explicitly styled spans.

    The root element and its attributes are kept. When there is no
    non-empty text leaf the root receives its plain text content instead.
    """
    root = parse_fragment(markup)
    runs = _collect_runs(root, resolve)
    if runs:
        _clear_children(root)
        _append_runs(root, runs)
    else:
        plain = "".join(leaf.text for leaf in iter_text_leaves(root))
        _clear_children(root)
        root.text = plain or None
    return to_markup(root)
