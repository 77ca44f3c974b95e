from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from _meta.hierarchy_extraction import (
    AggregatedNode, AggregationIndex, KeyStep, OtherNode,
    child_chain, level_chain, node_from_dict, nodes_total, sort_nodes_desc,
)
from _utils.bucketing import bucket_other


@dataclass(frozen=True)
class ViewState:
    """
    One pie. `items` are the raw children (value-descending); Other bucketing is
    applied at display time and only when `bucket_other` is set.
    `root_total` is the percentage denominator shared by the whole drill session.
    """
    title: str
    items: Tuple[AggregatedNode, ...]
    level_kind: str
    root_total: float
    subtitle: str = ""
    root_label: str = "Total"
    chain: Tuple[KeyStep, ...] = ()
    bucket_other: bool = True

    def display_items(self, threshold: float = 0.03) -> List[AggregatedNode]:
        if not self.bucket_other:
            return list(self.items)
        return bucket_other(self.items, threshold=threshold).items

    def percent_of_root(self, value: float) -> float:
        if not self.root_total:
            return 0.0
        return value / self.root_total * 100.0

    def chain_value(self, column: str) -> Optional[str]:
        for step in self.chain:
            if step.column == column and step.value is not None:
                return step.value
        return None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "items": [n.to_dict() for n in self.items],
            "level_kind": self.level_kind,
            "root_total": self.root_total,
            "subtitle": self.subtitle,
            "root_label": self.root_label,
            "chain": [s.to_list() for s in self.chain],
            "bucket_other": self.bucket_other,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ViewState":
        return cls(
            title=d["title"],
            items=tuple(node_from_dict(n) for n in d.get("items", [])),
            level_kind=d["level_kind"],
            root_total=float(d["root_total"]),
            subtitle=d.get("subtitle", ""),
            root_label=d.get("root_label", "Total"),
            chain=tuple(KeyStep.from_list(s) for s in d.get("chain", [])),
            bucket_other=bool(d.get("bucket_other", True)),
        )


def make_view(
    title: str,
    items: Iterable[AggregatedNode],
    level_kind: str,
    *,
    root_total: Optional[float] = None,
    subtitle: str = "",
    root_label: str = "Total",
    chain: Iterable[KeyStep] = (),
    bucket_other: bool = True,
) -> ViewState:
    """Build a view; `bucket_other` decides whether this level may show an Other slice."""
    items = tuple(sort_nodes_desc(items))
    return ViewState(
        title=title,
        items=items,
        level_kind=level_kind,
        root_total=nodes_total(items) if root_total is None else float(root_total),
        subtitle=subtitle,
        root_label=root_label,
        chain=tuple(chain),
        bucket_other=bucket_other,
    )


@dataclass(frozen=True)
class NavigationStack:
    current: Optional[ViewState] = None
    history: Tuple[ViewState, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.history) + (1 if self.current is not None else 0)

    def to_dict(self) -> dict:
        return {
            "current": self.current.to_dict() if self.current is not None else None,
            "history": [v.to_dict() for v in self.history],
        }

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> "NavigationStack":
        if not d:
            return cls()
        cur = d.get("current")
        return cls(
            current=ViewState.from_dict(cur) if cur else None,
            history=tuple(ViewState.from_dict(v) for v in d.get("history", [])),
        )


def _has_breakdown(kids: Iterable[AggregatedNode]) -> bool:
    return len({k.key for k in kids}) > 1


class DrillNavigator:
    """
    Stack-based drill-down over pie views.

    Only drill_in / expand_other / back / reset mutate the stack. None returned
    from drill_in / expand_other means "no data" (the stack is untouched);
    None returned from back means drill mode was left.
    Calls are not safe to interleave across threads.
    """

    def __init__(self, index: Optional[AggregationIndex] = None, stack: Optional[NavigationStack] = None):
        self.index = index
        self._stack = stack or NavigationStack()

    @classmethod
    def from_dict(cls, data: Optional[dict], index: Optional[AggregationIndex] = None) -> "DrillNavigator":
        return cls(index=index, stack=NavigationStack.from_dict(data))

    def to_dict(self) -> dict:
        return self._stack.to_dict()

    @property
    def stack(self) -> NavigationStack:
        return self._stack

    @property
    def current(self) -> Optional[ViewState]:
        return self._stack.current

    @property
    def in_drill_mode(self) -> bool:
        return self._stack.current is not None

    # ---------- transitions ----------
    def drill_in(self, next_view: Optional[ViewState]) -> Optional[ViewState]:
        if next_view is None or not next_view.items:
            return None
        cur = self._stack.current
        history = self._stack.history
        if cur is not None:
            # the denominator captured when the session started never changes
            next_view = replace(next_view, root_total=cur.root_total, root_label=cur.root_label)
            history = history + (cur,)
        self._stack = NavigationStack(current=next_view, history=history)
        return next_view

    def expand_other(self, other: OtherNode, *, bucket_other: bool = False) -> Optional[ViewState]:
        cur = self._stack.current
        if cur is None or not getattr(other, "children", ()):
            return None
        view = make_view(
            title=cur.title,
            items=other.children,
            level_kind="other",
            subtitle=cur.subtitle,
            chain=cur.chain,
            bucket_other=bucket_other,
        )
        return self.drill_in(view)

    def back(self) -> Optional[ViewState]:
        history = self._stack.history
        if history:
            self._stack = NavigationStack(current=history[-1], history=history[:-1])
        else:
            self._stack = NavigationStack()
        return self._stack.current

    def reset(self) -> Optional[ViewState]:
        history = self._stack.history
        if history:
            self._stack = NavigationStack(current=history[0])
        return self._stack.current

    # ---------- index-backed helpers ----------
    def _require_index(self) -> AggregationIndex:
        if self.index is None:
            raise ValueError("DrillNavigator needs an AggregationIndex for this operation")
        return self.index

    def open_budget(self, category: str, budget: str, section_label: str = "") -> Optional[ViewState]:
        """Start a new drill session on the departments of one budget."""
        chain = level_chain(category, budget)
        items = self._require_index().aggregate(chain)
        if not items:
            return None
        view = make_view(
            title=budget,
            items=items,
            level_kind="department",
            subtitle=f"{section_label} • Departments" if section_label else "Departments",
            root_label=f"{budget} total",
            chain=chain,
        )
        self._stack = NavigationStack()
        return self.drill_in(view)

    def can_drill(self, node: AggregatedNode) -> bool:
        """True for Other, or for a node with more than one distinct child."""
        cur = self._stack.current
        if cur is None:
            return False
        if node.is_other:
            return True
        return _has_breakdown(self._require_index().children(cur.chain, node.key))

    def drill_into(self, node: AggregatedNode) -> Optional[ViewState]:
        """
        Follow a clicked slice. Other expands; a decomposable node drills one
        level down; anything else is a no-op returning the current view.
        """
        cur = self._stack.current
        if cur is None:
            return None
        if isinstance(node, OtherNode):
            return self.expand_other(node)

        index = self._require_index()
        chain = child_chain(cur.chain, node.key)
        if chain is None:
            return cur
        kids = index.aggregate(chain)
        if not kids:
            return None
        if not _has_breakdown(kids):
            return cur

        budget = cur.chain_value("budget") or cur.title
        view = make_view(
            title=node.key,
            items=kids,
            level_kind=chain[-1].column,
            subtitle=f"From budget: {budget}",
            chain=chain,
        )
        return self.drill_in(view)
