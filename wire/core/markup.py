"""
Minimal markup tree and the default HTML renderer.

Components return an Element tree from render(), or RawHtml for markup
they rendered themselves. Plain strings are text and get escaped.
The wire handler hands the built tree to a renderer callable; renderHtml
is the default one.
"""

from dataclasses import dataclass, field
from html import escape
from typing import Any, Dict, List, Union

# Elements that never carry children or a closing tag
VOID_TAGS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr'
})


class RawHtml(str):
    """Markup that is emitted as-is, without escaping."""


@dataclass
class Element:
    """One HTML element: tag, attributes, children (Elements, text or RawHtml)"""
    tag: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    children: List['Node'] = field(default_factory=list)


Node = Union[Element, RawHtml, str, int, float, None]


def el(tag: str, *children: 'Node', **attributes: Any) -> Element:
    """
    Shorthand element constructor.

    Attribute names use '_' for '-' and a trailing '_' for Python keywords:
        el('button', 'Add', class_='btn', data_action='increment')
    """
    attrs = {}
    for name, value in attributes.items():
        attrs[name.rstrip('_').replace('_', '-')] = value
    return Element(tag, attrs, list(children))


def renderHtml(node: 'Node') -> str:
    """Serialize a markup tree to an HTML string."""
    parts: List[str] = []
    _renderInto(node, parts)
    return ''.join(parts)


def _renderInto(node: 'Node', parts: List[str]):
    if node is None:
        return
    if isinstance(node, RawHtml):
        parts.append(str(node))
        return
    if isinstance(node, Element):
        parts.append(f"<{node.tag}{_renderAttributes(node.attributes)}>")
        if node.tag in VOID_TAGS:
            return
        for child in node.children:
            _renderInto(child, parts)
        parts.append(f"</{node.tag}>")
        return
    if isinstance(node, (list, tuple)):
        for child in node:
            _renderInto(child, parts)
        return
    parts.append(escape(str(node), quote=False))


def _renderAttributes(attributes: Dict[str, Any]) -> str:
    rendered = []
    for name, value in attributes.items():
        # False/None drop the attribute, True renders it bare
        if value is None or value is False:
            continue
        if value is True:
            rendered.append(f" {name}")
        else:
            rendered.append(f' {name}="{escape(str(value), quote=True)}"')
    return ''.join(rendered)
