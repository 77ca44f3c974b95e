import pandas as pd

import app as budget_app
from _utils.build_master import SchemaMissingError
from tests.helpers import component_ids


def test_create_app_builds_all_panels(sample_records):
    dash_app = budget_app.create_app(df_rows=sample_records)
    ids = component_ids(dash_app.layout)

    assert "bt-table-wrap" in ids
    assert "pie-wrap" in ids
    assert "nav-store" in ids
    assert "flow-graph" in ids


def test_schema_problem_renders_error_panel(monkeypatch):
    def broken(*args, **kwargs):
        raise SchemaMissingError({"amount": "2025-2026 Approved"}, ["Type", "Budget"])

    monkeypatch.setattr(budget_app, "load_app_resources", broken)
    dash_app = budget_app.create_app(df_rows=pd.DataFrame())
    ids = component_ids(dash_app.layout)

    assert "bt-table-wrap" not in ids
    assert "2025-2026 Approved" in str(dash_app.layout)
