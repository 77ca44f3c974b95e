# flow_graph.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple

import plotly.graph_objects as go
from plotly.colors import qualitative

SOURCE, HUB, SINK, BALANCE = "source", "hub", "sink", "balance"

SANKEY_HEIGHT = 560
HUB_COLOR = "#5c6bc0"
SURPLUS_COLOR = "#2e7d32"
SHORTFALL_COLOR = "#c62828"


@dataclass(frozen=True)
class FlowNode:
    name: str
    kind: str
    value: float


@dataclass(frozen=True)
class FlowEdge:
    source: str
    target: str
    value: float


@dataclass(frozen=True)
class FlowGraph:
    nodes: Tuple[FlowNode, ...]
    edges: Tuple[FlowEdge, ...]
    hub: str

    @property
    def hub_inflow(self) -> float:
        return sum(e.value for e in self.edges if e.target == self.hub)

    @property
    def hub_outflow(self) -> float:
        return sum(e.value for e in self.edges if e.source == self.hub)

    @property
    def balance_node(self):
        return next((n for n in self.nodes if n.kind == BALANCE), None)

    def node_index(self) -> Dict[str, int]:
        return {n.name: i for i, n in enumerate(self.nodes)}


def _unique(name: str, used: set) -> str:
    """Node names double as ids; a budget on both sides gets a numbered twin."""
    out, n = name, 2
    while out in used:
        out = f"{name} ({n})"
        n += 1
    used.add(out)
    return out


def build_flow_graph(
    source_totals: Mapping[str, float],
    sink_totals: Mapping[str, float],
    *,
    hub_label: str = "City Budget",
    surplus_label: str = "Surplus",
    shortfall_label: str = "Shortfall",
) -> FlowGraph:
    """
    sources -> hub -> sinks, with one balance node when the two sides differ.

    balance = sum(sources) - sum(sinks)
      > 0 : hub -> Surplus edge carries the excess inflow
      < 0 : Shortfall -> hub edge covers the missing inflow
      = 0 : no balance node
    Either way hub inflow equals hub outflow. Non-positive totals are skipped.
    """
    sources = [(k, float(v)) for k, v in source_totals.items() if float(v) > 0]
    sinks = [(k, float(v)) for k, v in sink_totals.items() if float(v) > 0]
    source_total = sum(v for _, v in sources)
    sink_total = sum(v for _, v in sinks)
    balance = source_total - sink_total

    used = {hub_label, surplus_label, shortfall_label}
    sources = [(_unique(k, used), v) for k, v in sources]
    sinks = [(_unique(k, used), v) for k, v in sinks]

    nodes: List[FlowNode] = [FlowNode(k, SOURCE, v) for k, v in sources]
    nodes.append(FlowNode(hub_label, HUB, max(source_total, sink_total)))
    nodes += [FlowNode(k, SINK, v) for k, v in sinks]

    edges: List[FlowEdge] = [FlowEdge(k, hub_label, v) for k, v in sources]
    edges += [FlowEdge(hub_label, k, v) for k, v in sinks]

    if balance > 0:
        nodes.append(FlowNode(surplus_label, BALANCE, balance))
        edges.append(FlowEdge(hub_label, surplus_label, balance))
    elif balance < 0:
        nodes.append(FlowNode(shortfall_label, BALANCE, balance))
        edges.append(FlowEdge(shortfall_label, hub_label, -balance))

    return FlowGraph(nodes=tuple(nodes), edges=tuple(edges), hub=hub_label)


def _to_rgba(hex_color: str, alpha: float = 0.35) -> str:
    r, g, b = int(hex_color[1:3], 16), int(hex_color[3:5], 16), int(hex_color[5:7], 16)
    return f"rgba({r},{g},{b},{alpha})"


def _node_colors(graph: FlowGraph) -> List[str]:
    palette = qualitative.Plotly
    colors, i = [], 0
    for n in graph.nodes:
        if n.kind == BALANCE:
            colors.append(SURPLUS_COLOR if n.value > 0 else SHORTFALL_COLOR)
        elif n.kind == HUB:
            colors.append(HUB_COLOR)
        else:
            colors.append(palette[i % len(palette)])
            i += 1
    return colors


def make_flow_figure(graph: FlowGraph, title: str = "") -> go.Figure:
    idx = graph.node_index()
    colors = _node_colors(graph)
    src = [idx[e.source] for e in graph.edges]
    tgt = [idx[e.target] for e in graph.edges]

    fig = go.Figure(go.Sankey(
        arrangement="snap",
        node=dict(
            label=[n.name for n in graph.nodes],
            color=colors,
            pad=15,
            thickness=18,
            line=dict(color="#666", width=0.5),
            hovertemplate="%{label}<br>$%{value:,.0f}<extra></extra>",
        ),
        link=dict(
            source=src,
            target=tgt,
            value=[e.value for e in graph.edges],
            color=[_to_rgba(colors[s]) for s in src],
            hovertemplate="%{source.label} → %{target.label}<br>$%{value:,.0f}<extra></extra>",
        ),
    ))
    fig.update_layout(
        height=SANKEY_HEIGHT,
        margin=dict(l=10, r=10, t=40 if title else 10, b=10),
        font=dict(size=11),
    )
    if title:
        fig.update_layout(title=dict(text=title, font=dict(size=13)))
    return fig
