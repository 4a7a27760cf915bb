"""
Aggregation Query Builder

Typed filter predicates combined with AND and compiled to SQLAlchemy Core
expressions. Every user-supplied value travels as a bound parameter.

Grouping always happens on the trimmed categorical column and excludes rows
where that column is NULL or blank after trimming.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Literal, Optional, Sequence, Tuple, Union

from sqlalchemy import (
    ColumnElement,
    Select,
    and_,
    case,
    extract,
    func,
    not_,
    select,
    true,
)

from sales_analytics.database.models import SalesTransaction

SalesChannel = Literal["all", "direct", "indirect"]
ChannelView = Literal["partners", "commercial"]

TOP_N_PER_CATEGORY = 5

fact = SalesTransaction.__table__


# =============================================================================
# Predicates
# =============================================================================

@dataclass(frozen=True)
class NotBlank:
    """Column is not NULL and not empty once trimmed."""
    column: Any

    def clause(self) -> ColumnElement:
        return and_(self.column.isnot(None), func.trim(self.column) != "")


@dataclass(frozen=True)
class IsNotNull:
    column: Any

    def clause(self) -> ColumnElement:
        return self.column.isnot(None)


@dataclass(frozen=True)
class DateFrom:
    """Inclusive lower bound."""
    column: Any
    value: datetime

    def clause(self) -> ColumnElement:
        return self.column >= self.value


@dataclass(frozen=True)
class DateBefore:
    """Exclusive upper bound."""
    column: Any
    value: datetime

    def clause(self) -> ColumnElement:
        return self.column < self.value


@dataclass(frozen=True)
class Equals:
    """Equality on the trimmed column."""
    column: Any
    value: str

    def clause(self) -> ColumnElement:
        return func.trim(self.column) == self.value


@dataclass(frozen=True)
class InValues:
    """Membership of the trimmed column in a list of values."""
    column: Any
    values: Tuple[str, ...]

    def clause(self) -> ColumnElement:
        return func.trim(self.column).in_(list(self.values))


@dataclass(frozen=True)
class SalesChannelIs:
    """
    Derived direct/indirect classification.

    A transaction is indirect iff its order type is one of the configured
    indirect order types; everything else is direct.
    """
    channel: SalesChannel
    indirect_order_types: Tuple[str, ...]

    def clause(self) -> ColumnElement:
        is_indirect = fact.c.order_type.in_(list(self.indirect_order_types))
        if self.channel == "indirect":
            return is_indirect
        if self.channel == "direct":
            return not_(is_indirect)
        return true()


Predicate = Union[NotBlank, IsNotNull, DateFrom, DateBefore, Equals, InValues, SalesChannelIs]


class FilterSet:
    """
    Ordered list of predicates compiled into one WHERE clause.

    Example:
        filters = FilterSet([NotBlank(fact.c.supplier)])
        filters = filters.with_year_range(2023, 2024)
        select(...).where(filters.where())
    """

    def __init__(self, predicates: Optional[Sequence[Predicate]] = None):
        self.predicates: List[Predicate] = list(predicates or [])

    def __len__(self) -> int:
        return len(self.predicates)

    def extend(self, *predicates: Optional[Predicate]) -> "FilterSet":
        """Return a new set with the given predicates appended (None skipped)."""
        return FilterSet(self.predicates + [p for p in predicates if p is not None])

    def with_date_range(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        column: Any = None,
    ) -> "FilterSet":
        column = fact.c.delivery_date if column is None else column
        return self.extend(
            DateFrom(column, start) if start is not None else None,
            DateBefore(column, end) if end is not None else None,
        )

    def with_year_range(self, min_year: Optional[int], max_year: Optional[int]) -> "FilterSet":
        """``[Jan 1 min_year, Jan 1 max_year+1)``; a missing bound is open."""
        start = datetime(min_year, 1, 1) if min_year is not None else None
        end = datetime(max_year + 1, 1, 1) if max_year is not None else None
        return self.with_date_range(start, end)

    def where(self) -> ColumnElement:
        if not self.predicates:
            return true()
        return and_(*(p.clause() for p in self.predicates))


def channel_filter(channel: SalesChannel, indirect_order_types: Sequence[str]) -> Optional[SalesChannelIs]:
    """Predicate for a channel selection; None for "all"."""
    if channel == "all":
        return None
    return SalesChannelIs(channel, tuple(indirect_order_types))


# =============================================================================
# Expressions
# =============================================================================

def trimmed(column: Any) -> ColumnElement:
    return func.trim(column)


def quantity_value() -> ColumnElement:
    return func.coalesce(fact.c.quantity, 0)


def sales_value(
    channel: SalesChannel,
    indirect_order_types: Sequence[str],
    view: ChannelView = "partners",
) -> ColumnElement:
    """
    Per-row sales value for a channel selection.

    The two views resolve "all" differently. Partners take the first
    non-zero of sales_altona then direct_sales; commercial responsibles pick
    the column by order type. Both read sales_altona for "direct" and
    direct_sales for "indirect".
    """
    sales_altona = func.coalesce(fact.c.sales_altona, 0)
    direct_sales = func.coalesce(fact.c.direct_sales, 0)

    if channel == "direct":
        return sales_altona
    if channel == "indirect":
        return direct_sales

    if view == "commercial":
        return case(
            (fact.c.order_type.in_(list(indirect_order_types)), direct_sales),
            else_=sales_altona,
        )

    return case(
        (sales_altona != 0, sales_altona),
        (direct_sales != 0, direct_sales),
        else_=func.coalesce(fact.c.sales_altona, fact.c.direct_sales, 0),
    )


def year_of(column: Any = None) -> ColumnElement:
    column = fact.c.delivery_date if column is None else column
    return extract("year", column)


def month_of(column: Any = None) -> ColumnElement:
    column = fact.c.delivery_date if column is None else column
    return extract("month", column)


# =============================================================================
# Statements
# =============================================================================

def grouped_totals(
    group_column: Any,
    value: ColumnElement,
    filters: FilterSet,
    order_by: str = "sales",
    limit: Optional[int] = None,
) -> Select:
    """
    ``name, total_quantity, total_sales`` grouped on the trimmed column.

    ``order_by`` is "sales", "quantity" or "name"; the other two keys break
    ties in a fixed order.
    """
    name = trimmed(group_column).label("name")
    total_quantity = func.sum(quantity_value()).label("total_quantity")
    total_sales = func.sum(value).label("total_sales")

    ordering = {
        "quantity": (total_quantity.desc(), total_sales.desc(), name.asc()),
        "name": (name.asc(), total_sales.desc(), total_quantity.desc()),
    }.get(order_by, (total_sales.desc(), total_quantity.desc(), name.asc()))

    statement = (
        select(name, total_quantity, total_sales)
        .where(filters.extend(NotBlank(group_column)).where())
        .group_by(trimmed(group_column))
        .order_by(*ordering)
    )
    if limit is not None:
        statement = statement.limit(limit)
    return statement


def grouped_period_totals(
    group_column: Any,
    value: ColumnElement,
    filters: FilterSet,
    monthly: bool = False,
) -> Select:
    """``name, year[, month], total_quantity, total_sales`` per group and period."""
    year = year_of()
    columns = [trimmed(group_column).label("name"), year.label("year")]
    group_by = [trimmed(group_column), year]
    if monthly:
        month = month_of()
        columns.append(month.label("month"))
        group_by.append(month)

    columns.extend([
        func.sum(quantity_value()).label("total_quantity"),
        func.sum(value).label("total_sales"),
    ])

    return (
        select(*columns)
        .where(filters.extend(NotBlank(group_column)).where())
        .group_by(*group_by)
        .order_by(*group_by)
    )


def top_products_per_category(filters: FilterSet, cutoff: int = TOP_N_PER_CATEGORY) -> Select:
    """
    Top ``cutoff`` products of every category by quantity.

    Ranks with ROW_NUMBER partitioned by category (quantity desc, reference
    asc) and carries each category's total over all of its products.
    """
    category = trimmed(fact.c.product_category)
    family = trimmed(fact.c.product_family)
    reference = trimmed(fact.c.product_reference)

    grouped = (
        select(
            category.label("product_category"),
            family.label("product_family"),
            reference.label("product_reference"),
            func.sum(quantity_value()).label("total_quantity"),
        )
        .where(filters.extend(NotBlank(fact.c.product_category)).where())
        .group_by(category, family, reference)
        .cte("grouped")
    )

    ranked = select(
        grouped.c.product_category,
        grouped.c.product_family,
        grouped.c.product_reference,
        grouped.c.total_quantity,
        func.sum(grouped.c.total_quantity)
        .over(partition_by=grouped.c.product_category)
        .label("category_total_quantity"),
        func.row_number()
        .over(
            partition_by=grouped.c.product_category,
            order_by=(grouped.c.total_quantity.desc(), grouped.c.product_reference.asc()),
        )
        .label("rank"),
    ).cte("ranked")

    return (
        select(ranked)
        .where(ranked.c.rank <= cutoff)
        .order_by(
            ranked.c.total_quantity.desc(),
            ranked.c.product_category.asc(),
            ranked.c.product_reference.asc(),
        )
    )


def distinct_years() -> Select:
    year = year_of()
    return (
        select(year.label("year"))
        .where(fact.c.delivery_date.isnot(None))
        .group_by(year)
        .order_by(year.desc())
    )


def distinct_categories() -> Select:
    category = trimmed(fact.c.product_category)
    return (
        select(category.label("category"))
        .where(NotBlank(fact.c.product_category).clause())
        .group_by(category)
        .order_by(category.asc())
    )


def count_matching(filters: FilterSet) -> Select:
    return select(func.count().label("row_count")).select_from(fact).where(filters.where())


def period_sums(start: datetime, end: datetime, columns: Sequence[str]) -> Select:
    """``SUM`` of each named column over ``[start, end)`` of delivery dates."""
    filters = FilterSet().with_date_range(start, end)
    return select(
        *(func.sum(fact.c[name]).label(name) for name in columns)
    ).where(filters.where())
