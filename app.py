import pandas as pd
import requests
from dash import Dash, html

from settings import DEFAULTS, PATHS, INDEX_STRING
from _meta.hierarchy_extraction import AggregationIndex
from _meta.naming import make_name_cleaner
from _sections.budget_table import make_budget_table
from _sections.flow_section import make_flow_section
from _sections.pie_section import make_pie_section, register_pie_section_callbacks
from _utils.build_master import SchemaMissingError, load_or_build_master

# --- 1. SETUP ---

def load_app_resources(paths=PATHS, defaults=DEFAULTS, df_rows=None):
    """Loads the budget rows (cache or sheet) and builds the aggregation index once."""
    if df_rows is None:
        df_rows = load_or_build_master(
            defaults["tsv_url"],
            columns=defaults["columns"],
            categories=defaults["categories"],
            cache_path=paths["cache_rows_csv"],
        )
    print(f"Indexing {len(df_rows)} budget rows...")
    return AggregationIndex.from_records(df_rows, make_name_cleaner(defaults.get("org_name")))


def _error_layout(title, detail, found=None):
    children = [html.Div(title, className="title"), html.Div(str(detail))]
    if found is not None:
        children.append(html.Div(f"Columns found: {', '.join(found) or '(none)'}", className="subhead"))
    return html.Div(className="layout", children=[html.Div(className="schema-error", children=children)])

# --- 2. MAIN APP CREATION ---

def create_app(df_rows: pd.DataFrame = None):
    app = Dash(__name__, suppress_callback_exceptions=True)
    app.index_string = INDEX_STRING

    # --- Pre-load the index ONCE; a broken sheet replaces the whole layout ---
    try:
        index = load_app_resources(PATHS, DEFAULTS, df_rows)
    except SchemaMissingError as e:
        print(f"Schema error: {e}")
        app.layout = _error_layout("Budget sheet is not in the expected format", e, e.found)
        return app
    except requests.RequestException as e:
        print(f"Fetch error: {e}")
        app.layout = _error_layout("Budget sheet could not be loaded", e)
        return app

    app.layout = html.Div([
        html.Div(f"{DEFAULTS['org_name']} Budget", className="title layout"),
        make_budget_table(index, DEFAULTS),
        make_pie_section(),
        make_flow_section(index, DEFAULTS),
    ])

    # --- REGISTER ALL CALLBACKS ONCE AT STARTUP ---
    register_pie_section_callbacks(app, index, DEFAULTS)

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=False, port=8055)
