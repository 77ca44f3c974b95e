from typing import Dict, List

from _meta.hierarchy_extraction import AggregatedNode


def nodes(**values: float) -> List[AggregatedNode]:
    return [AggregatedNode(k, float(v)) for k, v in values.items()]


def as_map(items) -> Dict[str, float]:
    return {n.key: n.value for n in items}


def budget_tsv(rows, headers=("Type", "Budget", "Department", "Account", "2025-2026 Approved")) -> str:
    lines = ["\t".join(headers)]
    lines += ["\t".join(str(c) for c in r) for r in rows]
    return "\n".join(lines) + "\n"


def component_ids(component, out=None) -> list:
    """Ids of a Dash component and all of its descendants, depth-first."""
    out = [] if out is None else out
    cid = getattr(component, "id", None)
    if cid is not None:
        out.append(cid)
    children = getattr(component, "children", None)
    if isinstance(children, (list, tuple)):
        for c in children:
            component_ids(c, out)
    elif children is not None and hasattr(children, "children"):
        component_ids(children, out)
    return out
