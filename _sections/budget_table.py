# budget_table.py
"""
Level-0 budget table:
- one block per category (Revenues / Expenses / LESS), budgets by total descending
- "More ▸" on every budget with more than one account; it opens the pie drill
- "Total ..." rows for the configured categories
- a closing revenue-vs-expense row: sum(sources) - sum(sinks)

Ids exposed:
- bt-table-wrap                                             # hidden while drilling
- {"type": "more-btn", "category": str, "budget": str}      # n_clicks
"""

from __future__ import annotations
from typing import List, Mapping

from dash import html

from _meta.hierarchy_extraction import AggregationIndex


def fmt_money(x: float) -> str:
    return f"-${abs(x):,.0f}" if x < 0 else f"${x:,.0f}"


def _money_cell(x: float) -> html.Td:
    return html.Td(fmt_money(x), className="col-total")


def _budget_row(category: str, row: dict, has_more: bool) -> html.Tr:
    label = [html.Span(row["budget"])]
    if has_more:
        label.append(html.Button(
            "More ▸",
            id={"type": "more-btn", "category": category, "budget": row["budget"]},
            className="more-btn", n_clicks=0,
        ))
    return html.Tr([html.Td(label), _money_cell(row["total"])])


def table_rows(index: AggregationIndex, cfg: Mapping) -> List[html.Tr]:
    """All <tr> of the table, in display order."""
    rows: List[html.Tr] = []
    for cat, section_label in cfg["categories"].items():
        budgets = index.budget_rows(cat)
        if not budgets:
            continue
        rows.append(html.Tr([html.Td(section_label, colSpan=2)], className="section-row"))
        rows += [_budget_row(cat, r, index.has_breakdown(cat, r["budget"])) for r in budgets]
        total_label = cfg.get("section_totals", {}).get(cat)
        if total_label:
            rows.append(html.Tr([html.Td(total_label), _money_cell(index.category_total(cat))], className="total-row"))

    flow = cfg["flow"]
    net = index.net_difference(flow["sources"], flow["sinks"])
    rows.append(html.Tr([html.Td(cfg["net_label"]), _money_cell(net)], className="net-row"))
    return rows


def make_budget_table(index: AggregationIndex, cfg: Mapping) -> html.Div:
    return html.Div(id="bt-table-wrap", className="layout", children=[
        html.Div(className="panel", children=[
            html.Div("Budgets", className="title"),
            html.Table(className="budget-table", children=[html.Tbody(table_rows(index, cfg))]),
        ]),
    ])
