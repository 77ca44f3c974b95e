import pandas as pd
import pytest

from _meta.hierarchy_extraction import AggregationIndex, RECORD_COLS
from _meta.naming import make_name_cleaner
from settings import DEFAULTS

SAMPLE_ROWS = [
    ("REVENUE", "General Fund", "Finance", "Property Tax", 600.0),
    ("REVENUE", "General Fund", "Finance", "Sales Tax", 300.0),
    ("REVENUE", "Water Fund", "Utilities", "Water Sales", 100.0),
    ("EXPENSE", "General Fund", "Police; Fire", "Salaries", 400.0),
    ("EXPENSE", "General Fund", "Police", "Equipment", 100.0),
    ("EXPENSE", "General Fund", "City of Moody - Parks", "Maintenance", 150.0),
    ("EXPENSE", "General Fund", "", "Misc", 10.0),
    ("EXPENSE", "Water Fund", "Utilities", "Pipes", 200.0),
    ("LESS", "Transfers", "Finance", "Transfer Out", 50.0),
]


@pytest.fixture
def sample_records() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_ROWS, columns=RECORD_COLS)


@pytest.fixture
def sample_index(sample_records) -> AggregationIndex:
    return AggregationIndex.from_records(sample_records, make_name_cleaner(DEFAULTS["org_name"]))


@pytest.fixture
def fixed_measure():
    """Every label is 40px tall, whatever its text."""
    return lambda text, width: 40.0
