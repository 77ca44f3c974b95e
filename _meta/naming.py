from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

UNLABELED = "(Unlabeled)"

NameCleaner = Callable[[str], str]


def norm_text(s) -> str:
    if s is None:
        return ""
    s = str(s).strip()
    return "" if s in {"nan", "NaN", "None"} else s


def identity(name: str) -> str:
    return name


# ---------- Name trimming ----------
@dataclass
class BudgetNamer:
    """
    Strips organisational boilerplate from department / account names.

    "City of Moody - Parks"     -> "Parks"
    "Fire Dept (City of Moody)" -> "Fire Dept"

    Only the display name changes; callers keep amounts untouched.
    """
    org_name: str
    _lead: re.Pattern = field(init=False, repr=False)
    _trail: re.Pattern = field(init=False, repr=False)

    def __post_init__(self):
        org = re.escape(self.org_name.strip())
        self._lead = re.compile(rf"^\s*{org}\s*[-:–—]?\s*", re.IGNORECASE)
        self._trail = re.compile(rf"\s*\({org}\)\s*$", re.IGNORECASE)

    def clean(self, name: str) -> str:
        name = norm_text(name)
        if not name:
            return name
        return self._trail.sub("", self._lead.sub("", name)).strip()

    def __call__(self, name: str) -> str:
        return self.clean(name)


def make_name_cleaner(org_name: Optional[str]) -> NameCleaner:
    """Cleaner for the configured organisation; identity when none is set."""
    if not org_name:
        return identity
    return BudgetNamer(org_name)


def label_or_unlabeled(name) -> str:
    name = norm_text(name)
    return name or UNLABELED
