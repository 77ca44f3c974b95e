# config.py
from pathlib import Path

ROOT = Path(__file__).resolve().parents[0]
LOCAL = ROOT / "_local"

LOCAL.mkdir(exist_ok=True)

DEFAULTS = {
    # Published sheet (TSV output of the budget workbook)
    "tsv_url": "https://docs.google.com/spreadsheets/d/e/2PACX-1vRRtJHPNjRvv_DT0suQ4u-Z4yHKa-cwkkACS-l_QmJrPm7uuAnTUmN7xdwISa7iAEJfuuVrTEjY1xkV/pub?gid=0&single=true&output=tsv",
    "org_name": "City of Moody",
    # record field -> sheet header
    "columns": {
        "category": "Type",
        "budget": "Budget",
        "department": "Department",
        "account": "Account",
        "amount": "2025-2026 Approved",
    },
    # category value -> section label shown in the table / pie subheads
    "categories": {
        "REVENUE": "Revenues",
        "EXPENSE": "Expenses",
        "LESS": "LESS",
    },
    "section_totals": {"REVENUE": "Total Revenues", "EXPENSE": "Total Expenses"},
    "net_label": "Difference Revenue vs Expense",
    "flow": {
        "sources": ["REVENUE"],
        "sinks": ["EXPENSE", "LESS"],
        "hub_label": "City Budget",
        "surplus_label": "Surplus",
        "shortfall_label": "Shortfall",
    },
    # Pie segments below this share are combined into "Other"
    "other_threshold": 0.03,
    # Pie segment share at or above which the label sits on the slice instead of a leader line
    "leader_threshold": 0.08,
    "label_min_share": 0.07,
    "label_top_n": 8,
    "label_pad": 8,
    "pie_width": 900,
    "pie_height": 720,
}

PATHS = {
    "cache_rows_csv":  str(LOCAL / "budget_rows.csv"),
    "hierarchy_json":  str(LOCAL / "budget_hierarchy.json"),
}



# theme.py
INDEX_STRING = """<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>City of Moody Budget</title>
<style>
    html, body {
      margin: 0;
      padding: 0;
      font-family: system-ui, sans-serif;
    }
    .layout { padding: 8px; }
    .panel { border:1px solid #666; border-radius:10px; padding:8px; }
    .hidden { display: none !important; }

    /* --- Component & Text Styles --- */
    .toolbar { display:flex; gap:12px; align-items:center; }
    .btn { display:inline-flex; align-items:center; gap:4px; padding:4px 8px; border:1px solid #ddd; border-radius:8px; cursor:pointer; background:#fff; font-size: 12px; }
    .title { margin:0 0 6px 0; color:#444; font-weight:600; font-size: 15px; }
    .subhead { color:#666; font-size: 12px; }
    .message { color:#c62828; font-size: 12px; min-height: 16px; }
    .budget-table { width: 100%; border-collapse: collapse; font-size: 13px; }
    .budget-table td { border-bottom: 1px solid #eee; padding: 6px 8px; }
    .budget-table .col-total { text-align: right; font-variant-numeric: tabular-nums; }
    .budget-table .section-row td { font-weight: 700; background: #f8f8f8; }
    .budget-table .total-row td { font-weight: 700; border-top: 2px solid #999; }
    .budget-table .net-row td { background: #eef2ff; }
    .more-btn { margin-left: 8px; font-size: 11px; border: 1px solid #ccc; border-radius: 6px; background: #fff; cursor: pointer; }
    .schema-error { border:1px solid #c62828; border-radius:10px; padding:12px; color:#c62828; }
</style>
</head>
<body>
  {%app_entry%}
  <footer>{%config%}{%scripts%}{%renderer%}</footer>
</body>
</html>"""
