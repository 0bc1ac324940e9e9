"""Category spending analysis with budget roll-up."""

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from spendtrack.database.base import Database
from spendtrack.domain.category import ancestor_ids, parent_map
from spendtrack.domain.entities import Category, Transaction
from spendtrack.domain.errors import ValidationError
from spendtrack.utils.date_parser import get_period_range

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class CategorySpending:
    """Spending of one category within a period.

    ``total_spent`` and ``transaction_count`` include every descendant
    category; ``own_spent`` and ``own_count`` only the category itself.
    """

    category_id: int
    name: str
    color: str
    parent_id: Optional[int]
    parent_name: Optional[str]
    monthly_budget: Optional[Decimal]
    own_spent: Decimal
    own_count: int
    total_spent: Decimal
    transaction_count: int
    average_transaction: Decimal
    percent_of_total: float
    budget_utilization: Optional[float]

    @property
    def over_budget(self) -> bool:
        return self.monthly_budget is not None and self.total_spent > self.monthly_budget


@dataclass(frozen=True)
class SpendingSummary:
    total_spent: Decimal
    total_budget: Decimal
    overall_utilization: Optional[float]
    over_budget_count: int
    savings: Decimal
    uncategorized_spent: Decimal
    uncategorized_count: int
    total_outflow: Decimal


@dataclass(frozen=True)
class SpendingReport:
    date_from: date
    date_to: date
    categories: tuple[CategorySpending, ...]
    summary: SpendingSummary
    period: Optional[str] = None


def resolve_period(
    period: str,
    date_from: Optional[str | date] = None,
    date_to: Optional[str | date] = None,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """Resolve a named period to an inclusive date range.

    Raises:
        ValidationError: If the period is unknown or a custom range is incomplete
    """
    try:
        return get_period_range(period, date_from, date_to, today=today)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _utilization(spent: Decimal, budget: Optional[Decimal]) -> Optional[float]:
    if not budget:
        return None
    return float(spent / budget * 100)


def rollup(
    own: Mapping[int, tuple[Decimal, int]],
    parents: Mapping[int, Optional[int]],
) -> dict[int, tuple[Decimal, int]]:
    """Add each category's own spend and count to all of its ancestors.

    Args:
        own: Category ID to (own spend, own transaction count)
        parents: Category ID to parent ID

    Returns:
        Category ID to (total spend, total count). Ancestors with no own
        spend appear with the sum of their descendants.
    """
    totals: dict[int, list] = {cid: [spent, count] for cid, (spent, count) in own.items()}
    for cid, (spent, count) in own.items():
        for ancestor in ancestor_ids(cid, parents):
            entry = totals.setdefault(ancestor, [ZERO, 0])
            entry[0] += spent
            entry[1] += count
    return {cid: (spent, count) for cid, (spent, count) in totals.items()}


def spending_report(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    date_from: date,
    date_to: date,
    unit_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> SpendingReport:
    """Aggregate outflows per category against monthly budgets.

    Only negative, non-ignored amounts inside [date_from, date_to] count.
    Categories without spend in the period are left out. Rows are sorted by
    total spend, highest first, before ``limit`` is applied.

    Args:
        transactions: Candidate transactions
        categories: All categories (flat)
        date_from: First day of the period
        date_to: Last day of the period
        unit_id: Only count transactions in this unit
        limit: Maximum number of category rows

    Returns:
        SpendingReport with per-category rows and an overall summary
    """
    categories = {cat.id: cat for cat in categories}
    parents = parent_map(categories.values())

    own: dict[int, tuple[Decimal, int]] = {}
    total_outflow = ZERO
    uncategorized_spent = ZERO
    uncategorized_count = 0

    for txn in transactions:
        if txn.ignore or txn.amount >= 0:
            continue
        if not (date_from <= txn.date <= date_to):
            continue
        if unit_id is not None and txn.unit_id != unit_id:
            continue

        amount = abs(Decimal(txn.amount))
        total_outflow += amount
        if txn.category_id is None or txn.category_id not in categories:
            uncategorized_spent += amount
            uncategorized_count += 1
            continue
        spent, count = own.get(txn.category_id, (ZERO, 0))
        own[txn.category_id] = (spent + amount, count + 1)

    rows = []
    for cid, (total, count) in rollup(own, parents).items():
        cat = categories.get(cid)
        if cat is None or total <= 0:
            continue
        parent = categories.get(cat.parent_id) if cat.parent_id is not None else None
        own_spent, own_count = own.get(cid, (ZERO, 0))
        rows.append(
            CategorySpending(
                category_id=cid,
                name=cat.name,
                color=cat.color,
                parent_id=cat.parent_id,
                parent_name=parent.name if parent else None,
                monthly_budget=cat.monthly_budget,
                own_spent=own_spent,
                own_count=own_count,
                total_spent=total,
                transaction_count=count,
                average_transaction=total / count,
                percent_of_total=float(total / total_outflow * 100) if total_outflow else 0.0,
                budget_utilization=_utilization(total, cat.monthly_budget),
            )
        )

    rows.sort(key=lambda row: row.total_spent, reverse=True)
    over_budget_count = sum(1 for row in rows if row.over_budget)
    if limit is not None:
        rows = rows[:limit]

    categorized = sum((spent for spent, _ in own.values()), ZERO)
    total_budget = sum(
        (cat.monthly_budget for cat in categories.values() if cat.monthly_budget is not None),
        ZERO,
    )
    summary = SpendingSummary(
        total_spent=categorized,
        total_budget=total_budget,
        overall_utilization=_utilization(categorized, total_budget),
        over_budget_count=over_budget_count,
        savings=max(total_budget - categorized, ZERO),
        uncategorized_spent=uncategorized_spent,
        uncategorized_count=uncategorized_count,
        total_outflow=total_outflow,
    )
    return SpendingReport(
        date_from=date_from,
        date_to=date_to,
        categories=tuple(rows),
        summary=summary,
    )


class SpendingService:
    """Service for spending reports."""

    def __init__(self, db: Database):
        self.db = db

    def get_report(
        self,
        period: str = "current_month",
        date_from: Optional[str | date] = None,
        date_to: Optional[str | date] = None,
        unit_id: Optional[int] = None,
        limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> SpendingReport:
        """Build the spending report for a named period.

        Raises:
            ValidationError: If the period is invalid or limit is below 1
        """
        if limit is not None and limit < 1:
            raise ValidationError("Limit must be at least 1")
        start, end = resolve_period(period, date_from, date_to, today=today)

        transactions, _ = self.db.list_transactions(
            start_date=start,
            end_date=end,
            unit_id=unit_id,
            include_ignored=False,
        )
        report = spending_report(
            transactions,
            self.db.get_categories_flat(),
            start,
            end,
            unit_id=unit_id,
            limit=limit,
        )
        logger.debug(
            "Spending report %s..%s: %d categories, %s spent",
            start,
            end,
            len(report.categories),
            report.summary.total_spent,
        )
        return replace(report, period=period)
