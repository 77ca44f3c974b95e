# graph_pie.py
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import plotly.graph_objects as go
from plotly.colors import qualitative

from _analytics.drilldown import ViewState
from _meta.hierarchy_extraction import AggregatedNode
from _visual.label_layout import (
    RIGHT, EstimatedTextMeasurer, LabelBox, TextMeasurer,
    column_for_angle, measure_label_boxes, resolve_label_layout,
)

PIE_WIDTH = 900
PIE_HEIGHT = 720
HOLE = 0.55
LABEL_MARGIN = 8
LEADER_GAP = 14
TITLE_FS = 12
LABEL_FS = 11
OTHER_BASE = "#111827"
OTHER_STRIPE = "#a78bfa"
PALETTE = qualitative.T10 + qualitative.Set3


# ---------- small utils ----------
def fmt_dollars(x) -> str:
    return f"${x:,.0f}"


@dataclass(frozen=True)
class PieGeometry:
    width: float
    height: float
    outer_r: float
    cx: float
    cy: float
    col_w: float

    @property
    def left_col_x(self) -> float:
        return LABEL_MARGIN + self.col_w / 2

    @property
    def right_col_x(self) -> float:
        return self.width - LABEL_MARGIN - self.col_w / 2

    @property
    def band(self) -> Tuple[float, float]:
        return (LABEL_MARGIN, self.height - LABEL_MARGIN)

    def to_paper(self, x: float, y: float) -> Tuple[float, float]:
        # pixel space has y growing downwards
        return x / self.width, 1.0 - y / self.height


def pie_geometry(width: float = PIE_WIDTH, height: float = PIE_HEIGHT) -> PieGeometry:
    outer_r = min(width, height) * 0.40
    col_w = min(220.0, max(120.0, width * 0.32))
    return PieGeometry(width=width, height=height, outer_r=outer_r,
                       cx=width / 2, cy=height / 2 + 6, col_w=col_w)


def mid_angles(values: Sequence[float]) -> List[float]:
    """
    Mid-angle (radians, 0 = +x, counter-clockwise positive) of each slice for a
    pie that starts at 12 o'clock and runs clockwise.
    """
    total = sum(values) or 1.0
    out, cum = [], 0.0
    for v in values:
        frac = (cum + v / 2) / total
        out.append(math.radians(90.0 - 360.0 * frac))
        cum += v
    return out


def slice_labels(items: Sequence[AggregatedNode]) -> List[str]:
    """Pie labels double as slice ids; an Other bucket never shares a label with a real item."""
    real = {n.key for n in items if not n.is_other}
    out = []
    for n in items:
        if n.is_other and n.key in real:
            out.append(f"{n.key} ({len(n.children)} items)")
        else:
            out.append(n.key)
    return out


def node_for_label(items: Sequence[AggregatedNode], label: str) -> Optional[AggregatedNode]:
    for n, lbl in zip(items, slice_labels(items)):
        if lbl == label:
            return n
    return None


# ---------- labelling ----------
def split_labelled(
    values: Sequence[float],
    label_min_share: float = 0.07,
    leader_threshold: float = 0.08,
    top_n: int = 8,
) -> Tuple[List[int], List[int]]:
    """
    Indices of slices labelled on the slice and of slices labelled through a leader line.
    A slice is labelled when its visible share >= label_min_share or it is in the top_n.
    """
    if not values:
        return [], []
    local_total = sum(values) or 1.0
    ranked = sorted(values, reverse=True)
    cutoff = ranked[min(top_n - 1, len(ranked) - 1)]
    on_slice, leader = [], []
    for i, v in enumerate(values):
        share = v / local_total
        if share < label_min_share and v < cutoff:
            continue
        (on_slice if share >= leader_threshold else leader).append(i)
    return on_slice, leader


def external_label_boxes(
    labels: Sequence[str],
    values: Sequence[float],
    indices: Sequence[int],
    geom: PieGeometry,
    measure: TextMeasurer,
    pad: float = 8.0,
) -> List[LabelBox]:
    """Measure, then resolve, the leader-line labels of one pie."""
    angles = mid_angles(values)
    r = geom.outer_r + LEADER_GAP
    boxes = [
        LabelBox(
            anchor_y=geom.cy - r * math.sin(angles[i]),
            column=column_for_angle(angles[i]),
            text=labels[i],
            key=labels[i],
        )
        for i in indices
    ]
    measure_label_boxes(boxes, geom.col_w, measure)
    return resolve_label_layout(boxes, geom.band, pad)


def _wrap_html(measure: TextMeasurer, text: str, width: float) -> str:
    wrap = getattr(measure, "wrap", None)
    return "<br>".join(wrap(text, width)) if wrap else text


def _leader_annotations(boxes: List[LabelBox], values_by_label: Dict[str, float],
                        angle_by_label: Dict[str, float], geom: PieGeometry,
                        measure: TextMeasurer) -> List[dict]:
    anns = []
    for b in boxes:
        theta = angle_by_label[b.key]
        edge_x = geom.cx + geom.outer_r * math.cos(theta)
        edge_y = geom.cy - geom.outer_r * math.sin(theta)
        label_x = geom.right_col_x if b.column == RIGHT else geom.left_col_x
        x, y = geom.to_paper(edge_x, edge_y)
        anns.append(dict(
            x=x, y=y, xref="paper", yref="paper",
            ax=label_x - edge_x, ay=b.y - edge_y,
            text=f"{_wrap_html(measure, b.text, geom.col_w)}<br><b>{fmt_dollars(values_by_label[b.key])}</b>",
            showarrow=True, arrowhead=0, arrowwidth=1, arrowcolor="#888",
            width=geom.col_w, align="center", font=dict(size=LABEL_FS),
            bgcolor="rgba(255,255,255,0.92)", bordercolor="#ccc", borderpad=4,
        ))
    return anns


def _empty_figure(message: str, geom: PieGeometry) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(
        width=geom.width, height=geom.height, autosize=False,
        xaxis=dict(visible=False), yaxis=dict(visible=False),
        annotations=[dict(text=message, x=0.5, y=0.5, xref="paper", yref="paper", showarrow=False)],
        margin=dict(l=0, r=0, t=0, b=0),
    )
    return fig


def make_pie_figure(
    view: ViewState,
    *,
    threshold: float = 0.03,
    leader_threshold: float = 0.08,
    label_min_share: float = 0.07,
    label_top_n: int = 8,
    label_pad: float = 8.0,
    width: float = PIE_WIDTH,
    height: float = PIE_HEIGHT,
    measure: Optional[TextMeasurer] = None,
) -> go.Figure:
    geom = pie_geometry(width, height)
    items = view.display_items(threshold)
    if not items:
        return _empty_figure("No data", geom)

    measure = measure or EstimatedTextMeasurer(font_size=LABEL_FS)
    labels = slice_labels(items)
    values = [n.value for n in items]
    on_slice, leader = split_labelled(values, label_min_share, leader_threshold, label_top_n)

    texts = ["" for _ in items]
    for i in on_slice:
        texts[i] = f"{labels[i]}<br>{fmt_dollars(values[i])}"

    hover = []
    for n, lbl in zip(items, labels):
        hint = "<br><i>Click to expand</i>" if n.is_other else ""
        hover.append(f"<b>{lbl}</b><br>{view.percent_of_root(n.value):.1f}%{hint}")

    colors = [OTHER_BASE if n.is_other else PALETTE[i % len(PALETTE)] for i, n in enumerate(items)]
    shapes = ["/" if n.is_other else "" for n in items]

    x0, y0 = geom.to_paper(geom.cx - geom.outer_r, geom.cy + geom.outer_r)
    x1, y1 = geom.to_paper(geom.cx + geom.outer_r, geom.cy - geom.outer_r)

    fig = go.Figure(go.Pie(
        labels=labels, values=values, hole=HOLE,
        sort=False, direction="clockwise", rotation=0,
        text=texts, textinfo="text", textposition="inside", insidetextorientation="horizontal",
        hovertext=hover, hovertemplate="%{hovertext}<extra></extra>",
        marker=dict(colors=colors, line=dict(color="#fff", width=1),
                    pattern=dict(shape=shapes, fgcolor=OTHER_STRIPE, size=6)),
        domain=dict(x=[x0, x1], y=[y0, y1]),
    ))

    angle_by_label = dict(zip(labels, mid_angles(values)))
    boxes = external_label_boxes(labels, values, leader, geom, measure, label_pad)
    annotations = _leader_annotations(boxes, dict(zip(labels, values)), angle_by_label, geom, measure)

    cx, cy = geom.to_paper(geom.cx, geom.cy)
    annotations.append(dict(
        text=f"<b>{fmt_dollars(view.root_total)}</b><br>{view.root_label or 'Total'}",
        x=cx, y=cy, xref="paper", yref="paper", showarrow=False, font=dict(size=TITLE_FS + 2),
    ))

    fig.update_layout(
        width=geom.width, height=geom.height, autosize=False, showlegend=False,
        annotations=annotations,
        margin=dict(l=0, r=0, t=0, b=0),
        font=dict(size=LABEL_FS),
    )
    return fig


def legend_items(view: ViewState, threshold: float = 0.03, can_drill=None) -> List[dict]:
    """Badge rows for the legend next to the pie, in slice order."""
    items = view.display_items(threshold)
    return [
        {"label": lbl, "value": n.value, "is_other": n.is_other,
         "drillable": True if can_drill is None else can_drill(n),
         "color": OTHER_BASE if n.is_other else PALETTE[i % len(PALETTE)]}
        for i, (n, lbl) in enumerate(zip(items, slice_labels(items)))
    ]
