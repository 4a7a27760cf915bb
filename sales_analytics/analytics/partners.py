"""
Partner Name Canonicalizer

Partner names (suppliers, billing signs) are typed by hand in the source
extracts, so the same partner shows up as "Dûpont", "dupont" and "DUPONT ".
Names that share a canonical key are folded into one bucket that keeps a
display name, the raw variants and the accumulated totals.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Set

from sales_analytics.analytics.collation import ACCENT, collation_key
from sales_analytics.analytics.numbers import in_allowed_year_range

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def canonical_key(name: str) -> str:
    """
    Grouping identity of a raw name.

    Decomposes, strips diacritics, lowercases and drops every character that
    is not an ASCII letter or digit.
    """
    decomposed = unicodedata.normalize("NFKD", name or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub("", stripped.lower())


def choose_preferred_display_name(existing: str, candidate: str) -> str:
    """
    Pick the display name of a bucket.

    The longer name wins. Equal lengths fall back to collation order and the
    lower one wins; the result does not depend on argument order.
    """
    if len(candidate) != len(existing):
        return candidate if len(candidate) > len(existing) else existing
    if collation_key(candidate, ACCENT) < collation_key(existing, ACCENT):
        return candidate
    return existing


@dataclass
class YearTotals:
    total_sales: float = 0.0
    total_quantity: float = 0.0


@dataclass
class PartnerBucket:
    """Merged totals of every raw name sharing one canonical key."""
    key: str
    display_name: str
    ordinal: int
    variants: Set[str] = field(default_factory=set)
    total_sales: float = 0.0
    total_quantity: float = 0.0
    years: Dict[int, YearTotals] = field(default_factory=dict)

    def add(self, name: str, total_sales: float, total_quantity: float, ordinal: int) -> None:
        self.variants.add(name)
        self.display_name = choose_preferred_display_name(self.display_name, name)
        self.total_sales += total_sales
        self.total_quantity += total_quantity
        self.ordinal = min(self.ordinal, ordinal)

    def add_year(self, year: int, total_sales: float, total_quantity: float) -> None:
        if not in_allowed_year_range(year):
            return
        totals = self.years.setdefault(year, YearTotals())
        totals.total_sales += total_sales
        totals.total_quantity += total_quantity


class PartnerBucketSet:
    """
    Ordered collection of partner buckets keyed by canonical key.

    Example:
        buckets = PartnerBucketSet()
        buckets.add("Dûpont", 10.0, 1.0)
        buckets.add("DUPONT ", 5.0, 2.0)
        len(buckets)  # 1
    """

    def __init__(self):
        self._buckets: Dict[str, PartnerBucket] = {}
        self._next_ordinal = 0

    def __len__(self) -> int:
        return len(self._buckets)

    def __iter__(self) -> Iterator[PartnerBucket]:
        return iter(self._buckets.values())

    def add(
        self,
        raw_name: Optional[str],
        total_sales: float,
        total_quantity: float,
        ordinal: Optional[int] = None,
    ) -> Optional[PartnerBucket]:
        """Fold one aggregated row into its bucket; blank names are ignored."""
        name = (raw_name or "").strip()
        if not name:
            return None
        key = canonical_key(name)
        if not key:
            return None

        if ordinal is None:
            ordinal = self._next_ordinal
        self._next_ordinal = max(self._next_ordinal, ordinal + 1)

        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = PartnerBucket(key=key, display_name=name, ordinal=ordinal)
            self._buckets[key] = bucket
        bucket.add(name, total_sales, total_quantity, ordinal)
        return bucket

    def get(self, raw_name: Optional[str]) -> Optional[PartnerBucket]:
        name = (raw_name or "").strip()
        return self._buckets.get(canonical_key(name)) if name else None

    def all_variants(self, buckets: Optional[Iterable[PartnerBucket]] = None) -> List[str]:
        """Sorted raw names of the given buckets (all buckets by default)."""
        source = self._buckets.values() if buckets is None else buckets
        names: Set[str] = set()
        for bucket in source:
            names.update(bucket.variants)
        return sorted(names)
