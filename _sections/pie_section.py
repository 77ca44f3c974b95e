# pie_section.py
"""
Pie drill panel. Hidden until a "More ▸" button in the budget table is clicked.

Stores exposed:
- nav-store: dict | None        # serialized NavigationStack (current + history)

Events handled by one callback, so the stack has a single writer:
- more-btn click   -> open_budget (fresh session)
- slice / badge    -> drill_into (Other expands, leaves are no-ops)
- back             -> pop, or leave drill mode when the stack is empty
- top              -> reset to the first view of the session
"""

from __future__ import annotations
from typing import Mapping, Optional, Tuple

import plotly.graph_objects as go
from dash import dcc, html, Input, Output, State, callback_context, no_update
from dash.dependencies import ALL
from dash.exceptions import PreventUpdate

from _analytics.drilldown import DrillNavigator
from _helpers.graph import _click_label
from _meta.hierarchy_extraction import AggregationIndex
from _visual.graph_pie import legend_items, make_pie_figure, node_for_label, fmt_dollars

OPEN, SLICE, BACK, TOP = "open", "slice", "back", "top"


def pie_figure_kwargs(cfg: Mapping) -> dict:
    return dict(
        threshold=cfg["other_threshold"],
        leader_threshold=cfg["leader_threshold"],
        label_min_share=cfg["label_min_share"],
        label_top_n=cfg["label_top_n"],
        label_pad=cfg["label_pad"],
        width=cfg["pie_width"],
        height=cfg["pie_height"],
    )


def apply_nav_event(
    store: Optional[dict],
    index: AggregationIndex,
    event: str,
    cfg: Mapping,
    *,
    category: Optional[str] = None,
    budget: Optional[str] = None,
    label: Optional[str] = None,
) -> Tuple[Optional[dict], str]:
    """
    Returns (new store, message). A None store means "unchanged";
    a non-empty message is shown above the pie.
    """
    if event == OPEN:
        nav = DrillNavigator(index)
        view = nav.open_budget(category, budget, cfg["categories"].get(category, category))
        if view is None:
            return None, f"No rows found for {budget}."
        return nav.to_dict(), ""

    nav = DrillNavigator.from_dict(store, index)
    if event == BACK:
        nav.back()
        return nav.to_dict(), ""
    if event == TOP:
        nav.reset()
        return nav.to_dict(), ""
    if event != SLICE:
        raise ValueError(f"Unknown navigation event: {event!r}")

    cur = nav.current
    if cur is None:
        return None, ""
    node = node_for_label(cur.display_items(cfg["other_threshold"]), label)
    if node is None:
        return None, ""
    view = nav.drill_into(node)
    if view is None:
        return None, f"No rows found for {node.key}."
    if view is cur:
        return None, ""
    return nav.to_dict(), ""


def _legend(nav: DrillNavigator, threshold: float):
    rows = []
    for item in legend_items(nav.current, threshold, nav.can_drill):
        swatch = {"display": "inline-block", "width": "10px", "height": "10px",
                  "borderRadius": "2px", "background": item["color"], "marginRight": "6px"}
        if item["is_other"]:
            swatch["backgroundImage"] = "repeating-linear-gradient(45deg, #a78bfa 0 2px, transparent 2px 6px)"
        rows.append(html.Button(
            [html.Span(style=swatch), html.Span(item["label"]),
             html.Span(f" {fmt_dollars(item['value'])}", className="subhead")],
            id={"type": "pie-badge", "label": item["label"]},
            className="btn", n_clicks=0, disabled=not item["drillable"], style={"marginBottom": "4px"},
        ))
    return rows


def make_pie_section() -> html.Div:
    """Message line (shown with the table too) plus the pie panel, hidden until a drill starts."""
    return html.Div(id="pie-section", children=[
        dcc.Store(id="nav-store", data=None),
        html.Div(id="pie-message", className="message layout"),
        html.Div(id="pie-wrap", className="layout hidden", children=[html.Div(className="panel", children=[
            html.Div(className="toolbar", children=[
                html.Button("← Back", id="pie-btn-back", className="btn", n_clicks=0),
                html.Button("Top", id="pie-btn-top", className="btn", n_clicks=0),
                html.Span(id="pie-title", className="title"),
                html.Span(id="pie-subhead", className="subhead"),
            ]),
            html.Div(style={"display": "flex", "gap": "12px", "alignItems": "flex-start"}, children=[
                dcc.Graph(id="pie-graph", config={"displayModeBar": False}),
                html.Div(id="pie-legend", style={"display": "flex", "flexDirection": "column"}),
            ]),
        ])]),
    ])


def register_pie_section_callbacks(app, index: AggregationIndex, cfg: Mapping):

    @app.callback(
        Output("nav-store", "data"),
        Output("pie-message", "children"),
        Input({"type": "more-btn", "category": ALL, "budget": ALL}, "n_clicks"),
        Input("pie-graph", "clickData"),
        Input({"type": "pie-badge", "label": ALL}, "n_clicks"),
        Input("pie-btn-back", "n_clicks"),
        Input("pie-btn-top", "n_clicks"),
        State("nav-store", "data"),
        prevent_initial_call=True,
    )
    def _navigate(_more, clickData, _badges, _back, _top, store):
        ctx = callback_context
        trig = ctx.triggered_id
        if trig is None or not ctx.triggered[0].get("value"):
            raise PreventUpdate

        if isinstance(trig, dict) and trig.get("type") == "more-btn":
            new_store, msg = apply_nav_event(store, index, OPEN, cfg,
                                             category=trig["category"], budget=trig["budget"])
        elif isinstance(trig, dict) and trig.get("type") == "pie-badge":
            new_store, msg = apply_nav_event(store, index, SLICE, cfg, label=trig["label"])
        elif trig == "pie-graph":
            new_store, msg = apply_nav_event(store, index, SLICE, cfg, label=_click_label(clickData))
        elif trig == "pie-btn-back":
            new_store, msg = apply_nav_event(store, index, BACK, cfg)
        elif trig == "pie-btn-top":
            new_store, msg = apply_nav_event(store, index, TOP, cfg)
        else:
            raise PreventUpdate

        if new_store is None and not msg:
            raise PreventUpdate
        return (no_update if new_store is None else new_store), msg

    @app.callback(
        Output("pie-graph", "figure"),
        Output("pie-title", "children"),
        Output("pie-subhead", "children"),
        Output("pie-legend", "children"),
        Output("pie-wrap", "className"),
        Output("bt-table-wrap", "className"),
        Input("nav-store", "data"),
    )
    def _render(store):
        nav = DrillNavigator.from_dict(store, index)
        cur = nav.current
        if cur is None:
            return go.Figure(), "", "", [], "layout hidden", "layout"
        fig = make_pie_figure(cur, **pie_figure_kwargs(cfg))
        return fig, cur.title, cur.subtitle, _legend(nav, cfg["other_threshold"]), "layout", "layout hidden"
