# hierarchy_extraction.py
"""
Aggregate budget rows into the category -> budget -> department -> account hierarchy.

Records (one per sheet row) carry:
  category, budget, department (raw, possibly "A; B, C"), account, amount

A row that lists several departments contributes amount / len(departments)
to each of them, so every level of the hierarchy sums to the same total.

Outputs:
- aggregate(records, key_chain)  -> value-descending AggregatedNode list
- AggregationIndex               -> built once per data load, shared by the
                                    budget table, the drill navigator and the flow diagram
- CLI: dump the hierarchy of a TSV export as JSON
"""

from __future__ import annotations
import argparse
import json
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from _meta.naming import UNLABELED, NameCleaner, identity, label_or_unlabeled, norm_text

RECORD_COLS = ["category", "budget", "department", "account", "amount"]
PREPARED_COLS = ["row_id", "category", "budget", "department", "account", "amount", "share"]
KEY_COLUMNS = ("category", "budget", "department", "account")
LEVELS = ("budget", "department", "account")
DEPT_SEP = re.compile(r"[;,]")


@dataclass(frozen=True)
class Record:
    category: str
    budget: str
    department: str
    account: str
    amount: float


@dataclass(frozen=True)
class AggregatedNode:
    key: str
    value: float

    @property
    def is_other(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class OtherNode(AggregatedNode):
    """Synthetic node owning a snapshot of the siblings it collapsed."""
    children: Tuple[AggregatedNode, ...] = ()

    @property
    def is_other(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {"key": self.key, "value": self.value,
                "children": [c.to_dict() for c in self.children]}


def node_from_dict(d: dict) -> AggregatedNode:
    if "children" in d:
        return OtherNode(key=str(d["key"]), value=float(d["value"]),
                         children=tuple(node_from_dict(c) for c in d["children"]))
    return AggregatedNode(key=str(d["key"]), value=float(d["value"]))


def sort_nodes_desc(nodes: Iterable[AggregatedNode]) -> List[AggregatedNode]:
    return sorted(nodes, key=lambda n: (-n.value, n.key))


# ---------------------------- Key chains ----------------------------

@dataclass(frozen=True)
class KeyStep:
    """
    One link of a key chain. Steps with a value filter; the final step
    (value=None) names the column to group by.
    """
    column: str
    value: Optional[str] = None

    def to_list(self) -> list:
        return [self.column, self.value]

    @classmethod
    def from_list(cls, item: Sequence) -> "KeyStep":
        return cls(column=item[0], value=item[1])


KeyChain = Sequence[KeyStep]


def _validate_chain(chain: KeyChain) -> None:
    if not chain:
        raise ValueError("key chain must not be empty")
    for step in chain:
        if step.column not in KEY_COLUMNS:
            raise KeyError(f"Unknown key column: {step.column}")
    if chain[-1].value is not None:
        raise ValueError("the last step of a key chain groups and must not carry a value")
    unvalued = [s.column for s in chain[:-1] if s.value is None]
    if unvalued:
        raise ValueError(f"filter steps without a value: {unvalued}")


def level_chain(category: str, *path: str) -> Tuple[KeyStep, ...]:
    """
    level_chain("EXPENSE")                   -> budgets of EXPENSE
    level_chain("EXPENSE", "Parks")          -> departments of Parks
    level_chain("EXPENSE", "Parks", "Trails")-> accounts of Trails within Parks
    """
    if len(path) >= len(LEVELS):
        raise ValueError(f"path is deeper than the {len(LEVELS)} known levels: {path}")
    steps = [KeyStep("category", category)]
    steps += [KeyStep(col, val) for col, val in zip(LEVELS, path)]
    steps.append(KeyStep(LEVELS[len(path)]))
    return tuple(steps)


def child_chain(chain: KeyChain, key: str) -> Optional[Tuple[KeyStep, ...]]:
    """Chain one level below `key`; None when `key` sits on the bottom level."""
    if not chain:
        return None
    group_col = chain[-1].column
    if group_col not in LEVELS or group_col == LEVELS[-1]:
        return None
    nxt = LEVELS[LEVELS.index(group_col) + 1]
    return tuple(chain[:-1]) + (KeyStep(group_col, key), KeyStep(nxt))


# ---------------------------- Records ----------------------------

def normalize_category(s) -> str:
    return norm_text(s).upper()


def split_departments(cell) -> List[str]:
    cell = norm_text(cell)
    if not cell:
        return []
    return [p.strip() for p in DEPT_SEP.split(cell) if p.strip()]


def _records_frame(records: Union[pd.DataFrame, Iterable]) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        rows = [asdict(r) if isinstance(r, Record) else dict(r) for r in records]
        df = pd.DataFrame(rows, columns=RECORD_COLS)
    missing = [c for c in RECORD_COLS if c not in df.columns]
    if missing:
        raise KeyError(f"Records missing required columns: {missing}")
    return df[RECORD_COLS].reset_index(drop=True)


def prepare_records(records: Union[pd.DataFrame, Iterable], cleaner: NameCleaner = identity) -> pd.DataFrame:
    """
    One row per (record, listed department). `share` is the amount that row
    contributes: amount / number of departments the record lists.
    Names are cleaned before grouping; amounts are not touched.
    """
    df = _records_frame(records)
    if df.empty:
        return pd.DataFrame(columns=PREPARED_COLS)

    df["row_id"] = range(len(df))
    df["category"] = df["category"].map(normalize_category)
    df["budget"] = df["budget"].map(label_or_unlabeled)
    df["account"] = df["account"].map(lambda s: label_or_unlabeled(cleaner(norm_text(s))))
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0).astype(float)

    depts = df["department"].map(
        lambda cell: [label_or_unlabeled(cleaner(d)) for d in split_departments(cell)] or [UNLABELED]
    )
    df["department"] = depts
    df["_n"] = depts.map(len)
    df = df.explode("department", ignore_index=True)
    df["share"] = df["amount"] / df["_n"]
    return df[PREPARED_COLS]


def _filter_value(step: KeyStep) -> str:
    if step.column == "category":
        return normalize_category(step.value)
    return label_or_unlabeled(step.value)


def aggregate_prepared(frame: pd.DataFrame, key_chain: KeyChain) -> List[AggregatedNode]:
    _validate_chain(key_chain)
    work = frame
    for step in key_chain[:-1]:
        work = work[work[step.column] == _filter_value(step)]
        if work.empty:
            return []

    grouped = work.groupby(key_chain[-1].column, sort=False)["share"].sum()
    return sort_nodes_desc(AggregatedNode(str(k), float(v)) for k, v in grouped.items())


def aggregate(records: Union[pd.DataFrame, Iterable], key_chain: KeyChain,
              cleaner: NameCleaner = identity) -> List[AggregatedNode]:
    """
    Group records by the key chain and sum amounts, value-descending.
    Returns [] (never raises) when no record survives the filters.
    """
    return aggregate_prepared(prepare_records(records, cleaner), key_chain)


def nodes_total(nodes: Iterable[AggregatedNode]) -> float:
    return float(sum(n.value for n in nodes))


# ---------------------------- Index ----------------------------

def _budget_accounts(frame: pd.DataFrame) -> Dict[Tuple[str, str], List[AggregatedNode]]:
    if frame.empty:
        return {}
    g = (frame.groupby(["category", "budget", "account"], sort=False)["share"]
              .sum()
              .reset_index())
    out: Dict[Tuple[str, str], List[AggregatedNode]] = {}
    for (cat, bud), grp in g.groupby(["category", "budget"], sort=False):
        out[(cat, bud)] = sort_nodes_desc(
            AggregatedNode(a, float(v)) for a, v in zip(grp["account"], grp["share"])
        )
    return out


@dataclass
class AggregationIndex:
    """Prepared rows plus lookup maps, built once per data load."""
    frame: pd.DataFrame
    budget_accounts: Dict[Tuple[str, str], List[AggregatedNode]]

    @classmethod
    def from_records(cls, records, cleaner: NameCleaner = identity) -> "AggregationIndex":
        frame = prepare_records(records, cleaner)
        return cls(frame=frame, budget_accounts=_budget_accounts(frame))

    def aggregate(self, key_chain: KeyChain) -> List[AggregatedNode]:
        return aggregate_prepared(self.frame, key_chain)

    def children(self, key_chain: KeyChain, key: str) -> List[AggregatedNode]:
        chain = child_chain(key_chain, key)
        return self.aggregate(chain) if chain else []

    def categories(self) -> List[str]:
        return list(dict.fromkeys(self.frame["category"]))

    def category_total(self, category: str) -> float:
        scope = self.frame[self.frame["category"] == normalize_category(category)]
        return float(scope["share"].sum())

    def accounts_for(self, category: str, budget: str) -> List[AggregatedNode]:
        return self.budget_accounts.get((normalize_category(category), budget), [])

    def has_breakdown(self, category: str, budget: str) -> bool:
        return len(self.accounts_for(category, budget)) > 1

    def budget_rows(self, category: str) -> List[dict]:
        """Level-0 table rows: budget, total, accounts_count (total descending)."""
        return [
            {"budget": n.key, "total": n.value,
             "accounts_count": len(self.accounts_for(category, n.key))}
            for n in self.aggregate(level_chain(category))
        ]

    def category_totals(self, categories: Iterable[str]) -> Dict[str, float]:
        """budget -> total over the given categories (budgets sharing a name are summed)."""
        out: Dict[str, float] = {}
        for cat in categories:
            for n in self.aggregate(level_chain(cat)):
                out[n.key] = out.get(n.key, 0.0) + n.value
        return out

    def net_difference(self, plus: Iterable[str], minus: Iterable[str]) -> float:
        return (sum(self.category_total(c) for c in plus)
                - sum(self.category_total(c) for c in minus))

    def to_hierarchy(self) -> Dict[str, dict]:
        out: Dict[str, dict] = {}
        for cat in self.categories():
            budgets = {}
            for b in self.aggregate(level_chain(cat)):
                depts = {}
                for d in self.aggregate(level_chain(cat, b.key)):
                    depts[d.key] = {
                        "total": d.value,
                        "accounts": {a.key: a.value for a in self.aggregate(level_chain(cat, b.key, d.key))},
                    }
                budgets[b.key] = {"total": b.value, "departments": depts}
            out[cat] = {"total": self.category_total(cat), "budgets": budgets}
        return out


# ---------------------------- CLI ----------------------------

def main():
    from settings import DEFAULTS, PATHS
    from _meta.naming import make_name_cleaner
    from _utils.build_master import parse_budget_tsv

    ap = argparse.ArgumentParser(description="Build the budget -> department -> account hierarchy of a TSV export.")
    ap.add_argument("-i", "--input", required=True, help="Path to the TSV export")
    ap.add_argument("-o", "--out_json", default=PATHS["hierarchy_json"], help="Output JSON path")
    ap.add_argument("--org", default=DEFAULTS["org_name"], help="Organisation name stripped from labels")
    args = ap.parse_args()

    text = Path(args.input).read_text(encoding="utf-8-sig")
    df = parse_budget_tsv(text, DEFAULTS["columns"], DEFAULTS["categories"])
    index = AggregationIndex.from_records(df, make_name_cleaner(args.org))
    hier = index.to_hierarchy()

    Path(args.out_json).parent.mkdir(parents=True, exist_ok=True)
    with open(args.out_json, "w", encoding="utf-8") as f:
        json.dump(hier, f, ensure_ascii=False, indent=2)
    print(f"[ok] Saved hierarchy JSON → {args.out_json}")

    print(f"[summary] Rows loaded: {len(df)}")
    for cat, H in hier.items():
        print(f" - {cat}: budgets={len(H['budgets'])}  total={H['total']:,.0f}")


if __name__ == "__main__":
    main()
