# bucketing.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

from _meta.hierarchy_extraction import AggregatedNode, OtherNode, nodes_total, sort_nodes_desc

OTHER_LABEL = "Other"


@dataclass(frozen=True)
class BucketResult:
    kept: List[AggregatedNode]
    other: Optional[OtherNode] = None

    @property
    def items(self) -> List[AggregatedNode]:
        """Display order: kept items largest first, Other (if any) last."""
        return list(self.kept) + ([self.other] if self.other is not None else [])


def bucket_other(
    items: Sequence[AggregatedNode],
    total: Optional[float] = None,
    threshold: float = 0.03,
    *,
    min_bucket_size: int = 2,
    label: str = OTHER_LABEL,
) -> BucketResult:
    """
    Collapse siblings whose share of `total` is below `threshold` into one Other node.

    Parameters
    ----------
    items : value-sorted AggregatedNode sequence
    total : float, optional
        Share denominator. Defaults to the sum of `items`.
    threshold : float
        Fraction of `total` (0.03 == 3%). Both the small-item test and the
        growth test for Other compare against this same fractional scale.
    min_bucket_size : int
        An Other holding fewer items than this is pointless; the input is returned instead.
    label : str
        Key of the synthetic node.

    Returns
    -------
    BucketResult
        `kept` plus at most one `other`. When nothing qualifies, or the bucket
        would swallow every item, `kept` is the input unchanged and `other` is None.

    Notes
    -----
    - Sum of the output values always equals the sum of the input values.
    - Other owns a snapshot of the items it collapsed (smallest first).
    """
    items = list(items)
    unchanged = BucketResult(kept=items)
    if not items:
        return unchanged

    total = nodes_total(items) if total is None else float(total)
    if total <= 0:
        return unchanged

    asc = sorted(items, key=lambda n: (n.value, n.key))
    smalls = [n for n in asc if n.value / total < threshold]
    if not smalls:
        return unchanged
    remaining = [n for n in asc if n.value / total >= threshold]

    other_value = nodes_total(smalls)
    # Grow Other until it clears the visibility threshold itself
    while other_value / total < threshold and remaining:
        nxt = remaining.pop(0)
        smalls.append(nxt)
        other_value += nxt.value

    if len(smalls) == len(asc) or len(smalls) < min_bucket_size:
        return unchanged

    taken = {id(n) for n in smalls}
    kept = sort_nodes_desc(n for n in items if id(n) not in taken)
    other = OtherNode(key=label, value=other_value, children=tuple(smalls))
    return BucketResult(kept=kept, other=other)


def flattened_value(result: BucketResult) -> float:
    """Total value carried by a bucket result (kept items plus Other)."""
    return nodes_total(result.items)
