# label_layout.py
"""
Vertical placement of external pie labels.

Two phases:
1. measure  - every LabelBox gets the height of its wrapped text at the
              column's fixed width (a TextMeasurer supplied by the renderer)
2. resolve  - per side column, boxes are pushed apart so no two end closer
              than (half-heights + pad), then kept inside [min_y, max_y]

When the boxes of a column cannot fit the band, boxes are clamped to the band
and some overlap remains; there is no space to create.
"""

from __future__ import annotations
import math
import textwrap
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

LEFT = "left"
RIGHT = "right"

# (text, width) -> rendered height
TextMeasurer = Callable[[str, float], float]


@dataclass
class LabelBox:
    anchor_y: float
    column: str
    height: float = 0.0
    y: Optional[float] = None
    text: str = ""
    key: str = ""

    @property
    def top(self) -> float:
        return self.current_y - self.height / 2

    @property
    def bottom(self) -> float:
        return self.current_y + self.height / 2

    @property
    def current_y(self) -> float:
        return self.anchor_y if self.y is None else self.y


@dataclass(frozen=True)
class EstimatedTextMeasurer:
    """
    Height of a two-block label (wrapped title + one value line) without a
    browser: word-wraps on an average glyph width.
    """
    font_size: float = 11.0
    line_height: float = 1.15
    char_width: float = 0.55
    inner_pad: float = 14.0
    value_line: float = 18.0
    box_pad: float = 8.0

    def wrap(self, text: str, width: float) -> List[str]:
        usable = max(1.0, width - self.inner_pad)
        chars = max(1, int(usable // (self.font_size * self.char_width)))
        return textwrap.wrap(text, width=chars, break_long_words=False) or [""]

    def __call__(self, text: str, width: float) -> float:
        lines = len(self.wrap(text, width))
        return self.box_pad + lines * self.font_size * self.line_height + self.value_line + self.box_pad


def measure_label_boxes(boxes: Iterable[LabelBox], width: float, measure: TextMeasurer) -> List[LabelBox]:
    """Phase one: set every box's height from its wrapped text."""
    boxes = list(boxes)
    for b in boxes:
        b.height = float(measure(b.text, width))
    return boxes


def _needed(a: LabelBox, b: LabelBox, pad: float) -> float:
    return a.height / 2 + b.height / 2 + pad


def _clamp(b: LabelBox, min_y: float, max_y: float) -> None:
    b.y = max(min_y + b.height / 2, min(max_y - b.height / 2, b.y))


def content_height(boxes: Sequence[LabelBox], pad: float) -> float:
    if not boxes:
        return 0.0
    return sum(b.height for b in boxes) + pad * (len(boxes) - 1)


def _resolve_column(nodes: List[LabelBox], min_y: float, max_y: float, pad: float) -> List[LabelBox]:
    nodes.sort(key=lambda n: n.anchor_y)
    for n in nodes:
        n.y = n.anchor_y

    # forward pass (push down)
    for prev, cur in zip(nodes, nodes[1:]):
        need = _needed(prev, cur, pad)
        if cur.y - prev.y < need:
            cur.y = prev.y + need

    # backward pass (pull up)
    for i in range(len(nodes) - 2, -1, -1):
        cur, nxt = nodes[i], nodes[i + 1]
        need = _needed(cur, nxt, pad)
        if nxt.y - cur.y < need:
            cur.y = nxt.y - need

    for n in nodes:
        _clamp(n, min_y, max_y)

    # repair what clamping broke: push down, then pull back up from the bottom edge
    for prev, cur in zip(nodes, nodes[1:]):
        need = _needed(prev, cur, pad)
        if cur.y - prev.y < need:
            cur.y = prev.y + need
    if nodes:
        last = nodes[-1]
        last.y = min(last.y, max_y - last.height / 2)
    for i in range(len(nodes) - 2, -1, -1):
        cur, nxt = nodes[i], nodes[i + 1]
        cur.y = min(cur.y, nxt.y - _needed(cur, nxt, pad))

    # only bites when the column does not fit the band
    if content_height(nodes, pad) > (max_y - min_y):
        for n in nodes:
            _clamp(n, min_y, max_y)
    return nodes


def resolve_label_layout(
    boxes: Iterable[LabelBox],
    band: Tuple[float, float],
    pad: float = 8.0,
) -> List[LabelBox]:
    """
    Phase two: resolve y for every box, column by column.
    Returns the boxes sorted by column (left first) then by resolved y.
    """
    min_y, max_y = band
    if max_y < min_y:
        raise ValueError(f"band is inverted: {band}")

    by_col: Dict[str, List[LabelBox]] = {}
    for b in boxes:
        by_col.setdefault(b.column, []).append(b)

    out: List[LabelBox] = []
    for col in sorted(by_col, key=lambda c: (c != LEFT, c)):
        out.extend(_resolve_column(by_col[col], min_y, max_y, pad))
    return out


def column_for_angle(theta: float) -> str:
    """Side column for a slice whose mid-angle (radians, 0 = +x axis) is theta."""
    return RIGHT if math.cos(theta) >= 0 else LEFT


def has_overlap(boxes: Sequence[LabelBox], pad: float = 0.0, tol: float = 1e-9) -> bool:
    ordered = sorted(boxes, key=lambda b: b.current_y)
    return any(
        cur.current_y - prev.current_y < _needed(prev, cur, pad) - tol
        for prev, cur in zip(ordered, ordered[1:])
    )
