import pytest

from _sections.flow_section import flow_figure_for, flow_graph_for
from _visual.flow_graph import BALANCE, HUB, SINK, SOURCE, build_flow_graph, make_flow_figure
from settings import DEFAULTS


def test_surplus_balances_the_hub():
    graph = build_flow_graph({"A": 100, "B": 50}, {"C": 80, "D": 40})

    assert graph.hub_inflow == pytest.approx(150)
    assert graph.hub_outflow == pytest.approx(150)
    assert graph.balance_node.name == "Surplus"
    assert graph.balance_node.value == pytest.approx(30)


def test_shortfall_feeds_the_hub():
    graph = build_flow_graph({"A": 100}, {"C": 80, "D": 40})

    assert graph.balance_node.name == "Shortfall"
    assert graph.balance_node.value == pytest.approx(-20)
    assert graph.hub_inflow == pytest.approx(120)
    assert graph.hub_outflow == pytest.approx(120)


def test_balanced_budgets_have_no_balance_node():
    graph = build_flow_graph({"A": 60}, {"C": 60})

    assert graph.balance_node is None
    assert [n.kind for n in graph.nodes] == [SOURCE, HUB, SINK]


def test_non_positive_totals_are_dropped():
    graph = build_flow_graph({"A": 10, "Z": 0}, {"C": 10, "N": -5})

    assert {n.name for n in graph.nodes} == {"A", "City Budget", "C"}


def test_budget_on_both_sides_gets_a_distinct_node():
    graph = build_flow_graph({"General Fund": 100}, {"General Fund": 100})
    names = [n.name for n in graph.nodes]

    assert len(set(names)) == len(names)
    assert "General Fund (2)" in names


def test_sankey_figure_uses_node_indices():
    graph = build_flow_graph({"A": 100, "B": 50}, {"C": 80, "D": 40})
    fig = make_flow_figure(graph, title="Flow")
    sankey = fig.data[0]

    assert len(sankey.node.label) == len(graph.nodes)
    assert len(sankey.link.value) == len(graph.edges)
    assert fig.layout.title.text == "Flow"


def test_flow_from_index(sample_index):
    graph = flow_graph_for(sample_index, DEFAULTS["flow"])

    assert graph.hub_inflow == pytest.approx(1000)
    assert graph.balance_node.kind == BALANCE
    assert graph.balance_node.value == pytest.approx(90)
    assert len(flow_figure_for(sample_index, DEFAULTS["flow"]).data) == 1
