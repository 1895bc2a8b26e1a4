"""
Shared tree rendering logic for the web interface and the terminal.
Turns a built forest into nested HTML or an indented text drawing.
"""
from html import escape
from urllib.parse import quote
from typing import Any, Dict, List, Tuple

from orgchart.services.hierarchy import TreeNode, get_initials, iter_nodes


INDENT_PX = 32


def display_name(attributes: Dict[str, Any]) -> str:
    """Full name of a person, falling back to email when names are missing."""
    name = f"{attributes.get('firstName', '')} {attributes.get('lastName', '')}".strip()
    return name or str(attributes.get('email', ''))


def render_avatar_html(attributes: Dict[str, Any]) -> str:
    """Photo if the record has one, otherwise a circle with the person's initials."""
    photo = attributes.get('photo')
    if photo:
        return f'<img class="avatar" src="{escape(str(photo))}" loading="lazy" alt="" aria-hidden="true">'
    initials = get_initials(str(attributes.get('firstName', '')), str(attributes.get('lastName', '')))
    return f'<div class="avatar avatar-initials" aria-hidden="true">{escape(initials)}</div>'


def render_card_html(node: TreeNode) -> str:
    attributes = node.attributes
    html = '<div class="user-card">'
    html += render_avatar_html(attributes)
    html += '<div class="user-info">'
    html += f'<h3 class="user-name">{escape(display_name(attributes))}</h3>'
    html += f'<p class="user-email">{escape(str(attributes.get("email", "")))}</p>'
    html += '</div>'
    # Ids may contain "/", "?" or "#"; the route takes the whole encoded segment
    action = f"/users/{quote(str(node.id), safe='')}/remove"
    html += f'<form method="post" action="{escape(action)}">'
    html += '<button type="submit" class="remove-button">Remove User</button>'
    html += '</form>'
    html += '</div>'
    return html


def _render_open_html(node: TreeNode, level: int) -> str:
    """Opening markup for one node; nodes with reports leave their group open."""
    indent_px = level * INDENT_PX
    name = escape(display_name(node.attributes))
    node_id = escape(str(node.id))

    if not node.children:
        html = f'<div class="tree-node tree-leaf" role="treeitem" aria-level="{level + 1}" data-id="{node_id}" style="padding-left: {indent_px}px;">'
        html += '<span class="tree-toggle" aria-hidden="true">−</span>'
        html += render_card_html(node)
        html += '</div>\n'
        return html

    html = f'<details class="tree-node" open role="treeitem" aria-level="{level + 1}" data-id="{node_id}">'
    html += f'<summary style="padding-left: {indent_px}px;" aria-label="Toggle {name}\'s team">'
    html += render_card_html(node)
    html += '</summary>\n'
    html += '<div role="group">\n'
    return html


def render_node_html(node: TreeNode, level: int = 0) -> str:
    """
    Render one node and all of its reports.

    Nodes with reports are wrapped in an open <details> element so the
    browser owns expand/collapse; data-id lets scripts key that state by
    person across rebuilds. Leaves have no toggle. The walk uses an explicit
    stack, so arbitrarily deep chains of managers render fine.

    Args:
        node: Tree node to render
        level: Depth of the node, 0 for roots

    Returns:
        HTML string
    """
    parts: List[str] = []
    open_levels: List[int] = []
    for current, depth in iter_nodes([node]):
        while open_levels and open_levels[-1] >= depth:
            open_levels.pop()
            parts.append('</div>\n</details>\n')
        parts.append(_render_open_html(current, level + depth))
        if current.children:
            open_levels.append(depth)
    parts.extend('</div>\n</details>\n' for _ in open_levels)
    return "".join(parts)


def render_forest_html(forest: List[TreeNode]) -> str:
    """Render the whole forest; empty string for an empty forest."""
    if not forest:
        return ""
    html = '<div class="tree" role="tree" aria-label="Organization hierarchy">\n'
    for node in forest:
        html += render_node_html(node)
    html += '</div>\n'
    return html


# Terminal rendering
def format_forest_text(forest: List[TreeNode]) -> str:
    """Draws the forest with box-drawing connectors, one root per block."""
    lines: List[str] = []
    for root in forest:
        lines.append(f"{display_name(root.attributes)} [{root.id}]")
        stack = _child_entries(root, "")
        while stack:
            node, indent, is_last = stack.pop()
            connector = "└── " if is_last else "├── "
            lines.append(f"{indent}{connector}{display_name(node.attributes)} [{node.id}]")
            stack.extend(_child_entries(node, indent + ("    " if is_last else "│   ")))
    return "\n".join(lines)


def _child_entries(parent: TreeNode, indent: str) -> List[Tuple[TreeNode, str, bool]]:
    """Stack entries for a node's children, reversed so the first child pops first."""
    last = len(parent.children) - 1
    return [(child, indent, i == last) for i, child in reversed(list(enumerate(parent.children)))]
