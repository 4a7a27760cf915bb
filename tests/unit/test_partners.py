"""
Unit Tests - Partner Name Canonicalization
"""
from itertools import permutations

import pytest

from sales_analytics.analytics.partners import (
    PartnerBucketSet,
    canonical_key,
    choose_preferred_display_name,
)

VARIANTS = ["Dûpont", "dupont", "DUPONT "]
AMOUNTS = {"Dûpont": (100.0, 3.0), "dupont": (20.5, 1.0), "DUPONT ": (4.25, 2.0)}


class TestCanonicalKey:
    """Tests for canonical_key"""

    @pytest.mark.parametrize("name", VARIANTS)
    def test_variants_share_one_key(self, name):
        assert canonical_key(name) == "dupont"

    def test_punctuation_and_spaces_are_dropped(self):
        assert canonical_key("Dupont & Fils S.A.") == "dupontfilssa"

    def test_idempotent(self):
        for name in VARIANTS + ["Ça Va-Bien"]:
            key = canonical_key(name)
            assert canonical_key(key) == key

    def test_non_latin_only_name_has_empty_key(self):
        assert canonical_key("***") == ""


class TestDisplayName:
    """Tests for choose_preferred_display_name"""

    def test_longer_name_wins(self):
        assert choose_preferred_display_name("Dupont", "Dupont SA") == "Dupont SA"
        assert choose_preferred_display_name("Dupont SA", "Dupont") == "Dupont SA"

    def test_equal_length_is_symmetric(self):
        assert choose_preferred_display_name("DUPONT", "dupont") == "dupont"
        assert choose_preferred_display_name("dupont", "DUPONT") == "dupont"
        assert choose_preferred_display_name("Dûpont", "dupont") == "dupont"


class TestPartnerBucketSet:
    """Tests for bucket folding"""

    def test_fold_is_order_independent(self):
        states = set()
        for order in permutations(VARIANTS):
            buckets = PartnerBucketSet()
            for name in order:
                sales, quantity = AMOUNTS[name]
                buckets.add(name, sales, quantity)

            assert len(buckets) == 1
            bucket = next(iter(buckets))
            states.add((
                bucket.key,
                bucket.display_name,
                frozenset(bucket.variants),
                round(bucket.total_sales, 9),
                round(bucket.total_quantity, 9),
                bucket.ordinal,
            ))

        assert len(states) == 1
        key, display_name, variants, total_sales, total_quantity, ordinal = states.pop()
        assert key == "dupont"
        assert display_name == "dupont"
        assert variants == {"Dûpont", "dupont", "DUPONT"}
        assert total_sales == 124.75
        assert total_quantity == 6.0
        assert ordinal == 0

    def test_blank_names_are_ignored(self):
        buckets = PartnerBucketSet()
        assert buckets.add("   ", 10.0, 1.0) is None
        assert buckets.add(None, 10.0, 1.0) is None
        assert buckets.add("--", 10.0, 1.0) is None
        assert len(buckets) == 0

    def test_lookup_and_variants(self):
        buckets = PartnerBucketSet()
        buckets.add("Acme", 1.0, 1.0, ordinal=3)
        buckets.add("ACME ", 2.0, 1.0, ordinal=1)
        buckets.add("Zeta", 5.0, 1.0, ordinal=0)

        acme = buckets.get(" acme")
        assert acme is not None
        assert acme.ordinal == 1
        assert acme.total_sales == 3.0
        assert buckets.all_variants() == ["ACME", "Acme", "Zeta"]
        assert buckets.all_variants([acme]) == ["ACME", "Acme"]

    def test_year_totals_skip_out_of_range_years(self):
        buckets = PartnerBucketSet()
        bucket = buckets.add("Acme", 10.0, 2.0)
        bucket.add_year(2023, 4.0, 1.0)
        bucket.add_year(2023, 6.0, 1.0)
        bucket.add_year(1800, 99.0, 9.0)

        assert set(bucket.years) == {2023}
        assert bucket.years[2023].total_sales == 10.0
        assert bucket.years[2023].total_quantity == 2.0
