# flow_section.py
from __future__ import annotations
from typing import Mapping

import plotly.graph_objects as go
from dash import dcc, html

from _meta.hierarchy_extraction import AggregationIndex
from _visual.flow_graph import FlowGraph, build_flow_graph, make_flow_figure


def flow_graph_for(index: AggregationIndex, flow_cfg: Mapping) -> FlowGraph:
    """Source budgets -> hub -> sink budgets, from the per-budget totals of the index."""
    return build_flow_graph(
        index.category_totals(flow_cfg["sources"]),
        index.category_totals(flow_cfg["sinks"]),
        hub_label=flow_cfg["hub_label"],
        surplus_label=flow_cfg["surplus_label"],
        shortfall_label=flow_cfg["shortfall_label"],
    )


def flow_figure_for(index: AggregationIndex, flow_cfg: Mapping) -> go.Figure:
    graph = flow_graph_for(index, flow_cfg)
    if not graph.edges:
        fig = go.Figure()
        fig.update_layout(
            xaxis=dict(visible=False), yaxis=dict(visible=False),
            annotations=[dict(text="No data", x=0.5, y=0.5, xref="paper", yref="paper", showarrow=False)],
        )
        return fig
    return make_flow_figure(graph)


def make_flow_section(index: AggregationIndex, cfg: Mapping) -> html.Div:
    return html.Div(id="flow-wrap", className="layout", children=[
        html.Div(className="panel", children=[
            html.Div("Where the money goes", className="title"),
            dcc.Graph(id="flow-graph", figure=flow_figure_for(index, cfg["flow"]),
                      config={"displayModeBar": False}),
        ]),
    ])
