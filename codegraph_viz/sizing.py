"""On-screen size estimation for graph nodes.

The renderer reports a measured size once a node has been drawn. Before
that, both layout engines need a footprint, so we approximate the card the
renderer will produce: an icon, the node name and a type badge on the header
row, and an optional wrapped summary underneath.
"""

from __future__ import annotations

import math
from typing import Dict

from .models import Node, Size

PADDING = 30

MIN_WIDTH = 200
MAX_WIDTH = 280

ICON_WIDTH = 28
NAME_CHAR_WIDTH = 6
BADGE_CHAR_WIDTH = 5
BADGE_PADDING = 16
HORIZONTAL_PADDING = 40

BASE_HEIGHT = 62
SUMMARY_CHARS_PER_LINE = 38
SUMMARY_LINE_HEIGHT = 16
SUMMARY_MARGIN = 12
LONG_SUMMARY_CHARS = 60


def estimate(node: Node) -> Size:
    """Return the padded layout footprint of ``node``."""
    if node.measured is not None:
        return Size(node.measured.width + PADDING, node.measured.height + PADDING)

    data = node.data
    badge = len(data.node_type.value) * BADGE_CHAR_WIDTH + BADGE_PADDING
    content = ICON_WIDTH + len(data.name or "") * NAME_CHAR_WIDTH + badge + HORIZONTAL_PADDING
    width = min(max(content, MIN_WIDTH), MAX_WIDTH)

    height = BASE_HEIGHT
    summary = data.summary or ""
    if summary:
        lines = math.ceil(len(summary) / SUMMARY_CHARS_PER_LINE)
        height += lines * SUMMARY_LINE_HEIGHT + SUMMARY_MARGIN
        if len(summary) > LONG_SUMMARY_CHARS:
            width = MAX_WIDTH

    return Size(width + PADDING, height + PADDING)


def estimate_all(nodes) -> Dict[str, Size]:
    return {node.id: estimate(node) for node in nodes}
