import math

from dash import html

from _analytics.drilldown import DrillNavigator, NavigationStack, make_view
from _meta.hierarchy_extraction import OtherNode
from _sections.budget_table import fmt_money, table_rows
from _sections.pie_section import (
    BACK, OPEN, SLICE, TOP, _legend, apply_nav_event, make_pie_section, pie_figure_kwargs,
)
from _visual.graph_pie import (
    make_pie_figure, mid_angles, node_for_label, slice_labels, split_labelled,
)
from settings import DEFAULTS
from tests.helpers import component_ids, nodes


def _current(store):
    return NavigationStack.from_dict(store).current


def test_open_then_drill_then_back(sample_index):
    store, msg = apply_nav_event(None, sample_index, OPEN, DEFAULTS, category="EXPENSE", budget="General Fund")
    assert msg == ""
    assert _current(store).subtitle == "Expenses • Departments"

    store, _ = apply_nav_event(store, sample_index, SLICE, DEFAULTS, label="Police")
    assert _current(store).title == "Police"

    store, _ = apply_nav_event(store, sample_index, BACK, DEFAULTS)
    assert _current(store).title == "General Fund"

    store, _ = apply_nav_event(store, sample_index, BACK, DEFAULTS)
    assert _current(store) is None


def test_open_unknown_budget_reports_no_rows(sample_index):
    store, msg = apply_nav_event(None, sample_index, OPEN, DEFAULTS, category="EXPENSE", budget="Nope")

    assert store is None
    assert msg == "No rows found for Nope."


def test_leaf_and_unknown_slices_leave_store_unchanged(sample_index):
    store, _ = apply_nav_event(None, sample_index, OPEN, DEFAULTS, category="EXPENSE", budget="General Fund")

    assert apply_nav_event(store, sample_index, SLICE, DEFAULTS, label="Fire") == (None, "")
    assert apply_nav_event(store, sample_index, SLICE, DEFAULTS, label="Not a slice") == (None, "")


def test_other_slice_expands_and_top_resets(sample_index):
    store, _ = apply_nav_event(None, sample_index, OPEN, DEFAULTS, category="EXPENSE", budget="General Fund")
    store, _ = apply_nav_event(store, sample_index, SLICE, DEFAULTS, label="Other")

    assert _current(store).level_kind == "other"

    store, _ = apply_nav_event(store, sample_index, TOP, DEFAULTS)
    assert _current(store).title == "General Fund"
    assert NavigationStack.from_dict(store).depth == 1


def test_split_labelled_top_n_and_leader_threshold():
    values = [50, 20, 10, 6, 5, 4, 2, 1, 1, 1]
    on_slice, leader = split_labelled(values, label_min_share=0.07, leader_threshold=0.08, top_n=8)

    assert on_slice == [0, 1, 2]
    assert leader == [3, 4, 5, 6, 7, 8, 9]


def test_mid_angles_start_at_twelve_and_run_clockwise():
    a, b = mid_angles([1, 1])

    assert math.cos(a) > 0
    assert math.cos(b) < 0


def test_other_label_never_collides_with_real_slice():
    other = OtherNode("Other", 3.0, children=tuple(nodes(X=2, Y=1)))
    items = nodes(Other=10, Big=20) + [other]
    labels = slice_labels(items)

    assert len(set(labels)) == 3
    assert node_for_label(items, labels[-1]) is other


def test_pie_figure_uses_root_total_in_centre(sample_index):
    store, _ = apply_nav_event(None, sample_index, OPEN, DEFAULTS, category="EXPENSE", budget="General Fund")
    store, _ = apply_nav_event(store, sample_index, SLICE, DEFAULTS, label="Police")
    fig = make_pie_figure(_current(store), **pie_figure_kwargs(DEFAULTS))
    pie = fig.data[0]

    assert list(pie.labels) == ["Salaries", "Equipment"]
    assert any("$660" in a.text and "General Fund total" in a.text for a in fig.layout.annotations)
    assert "30.3%" in pie.hovertext[0]


def test_pie_figure_marks_other_with_pattern():
    view = make_view("Parks", nodes(A=500, B=300, C=150, D=20, E=15, F=10, G=5), "department")
    fig = make_pie_figure(view)
    pie = fig.data[0]

    assert pie.labels[-1] == "Other"
    assert pie.marker.pattern.shape[-1] == "/"
    assert pie.marker.pattern.shape[0] == ""


def test_empty_view_gives_placeholder_figure():
    fig = make_pie_figure(make_view("Empty", [], "department"))

    assert len(fig.data) == 0
    assert fig.layout.annotations[0].text == "No data"


def _text(cell):
    children = cell.children if isinstance(cell.children, list) else [cell.children]
    return "".join(c.children if isinstance(c, html.Span) else str(c) for c in children if not isinstance(c, html.Button))


def test_budget_table_rows(sample_index):
    rows = table_rows(sample_index, DEFAULTS)
    labels = [_text(r.children[0]) for r in rows]

    assert labels[0] == "Revenues"
    assert "Total Revenues" in labels
    assert labels[-1] == DEFAULTS["net_label"]
    assert rows[-1].children[1].children == fmt_money(90.0)

    more = [
        b.id for r in rows for b in (r.children[0].children if isinstance(r.children[0].children, list) else [])
        if isinstance(b, html.Button)
    ]
    assert {"type": "more-btn", "category": "EXPENSE", "budget": "General Fund"} in more
    assert {"type": "more-btn", "category": "EXPENSE", "budget": "Water Fund"} not in more


def test_fmt_money_negative():
    assert fmt_money(-1234.4) == "-$1,234"


def test_message_line_stays_visible_while_the_pie_is_hidden():
    section = make_pie_section()
    wrap = next(c for c in section.children if getattr(c, "id", None) == "pie-wrap")

    assert "hidden" in wrap.className
    assert "pie-message" in component_ids(section)
    assert "pie-message" not in component_ids(wrap)


def test_legend_disables_badges_without_breakdown(sample_index):
    store, _ = apply_nav_event(None, sample_index, OPEN, DEFAULTS, category="EXPENSE", budget="General Fund")
    badges = _legend(DrillNavigator.from_dict(store, sample_index), DEFAULTS["other_threshold"])

    assert {b.id["label"]: b.disabled for b in badges} == {"Police": False, "Fire": True, "Other": False}
