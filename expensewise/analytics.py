"""Aggregations over a ledger snapshot.

Pure functions: they take expenses (anything with ``date``, ``amount``,
``category`` and ``notes`` attributes), budgets and global-state values and
return plain dicts and lists. Nothing here touches the database.
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

SORT_KEYS = ("date", "amount", "category")
SORT_ORDERS = ("asc", "desc")


def month_key(d: dt.date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def total_expenses(expenses: Iterable[Any]) -> float:
    return round(sum(e.amount for e in expenses), 2)


def total_spend_to_date(expenses: Iterable[Any], archived_spend: float) -> float:
    """Current expenses plus spend carried in the archived counter."""
    return round(sum(e.amount for e in expenses) + archived_spend, 2)


def remaining_budget(monthly_budget: float, expenses: Iterable[Any], archived_spend: float) -> float:
    # Negative when over budget
    return round(monthly_budget - total_spend_to_date(expenses, archived_spend), 2)


def todays_total(expenses: Iterable[Any], today: Optional[dt.date] = None) -> float:
    today = today or dt.date.today()
    return round(sum(e.amount for e in expenses if e.date == today), 2)


def daily_totals(expenses: Iterable[Any]) -> Dict[str, float]:
    days: Dict[str, float] = defaultdict(float)
    for e in expenses:
        days[e.date.isoformat()] += e.amount
    return {d: round(v, 2) for d, v in sorted(days.items())}


def monthly_totals(expenses: Iterable[Any]) -> Dict[str, float]:
    months: Dict[str, float] = defaultdict(float)
    for e in expenses:
        months[month_key(e.date)] += e.amount
    return {m: round(v, 2) for m, v in sorted(months.items())}


def spending_by_category(expenses: Iterable[Any]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for e in expenses:
        totals[e.category] += e.amount
    return {k: round(v, 2) for k, v in sorted(totals.items(), key=lambda kv: kv[1], reverse=True)}


def budget_status(expenses: Iterable[Any], budgets: Iterable[Any]) -> List[Dict[str, Any]]:
    """Compare spend per category against each category budget."""
    spent_per_category = spending_by_category(expenses)
    status: List[Dict[str, Any]] = []
    for budget in sorted(budgets, key=lambda b: b.category):
        limit = round(float(budget.amount), 2)
        spent = spent_per_category.get(budget.category, 0.0)
        if limit > 0:
            percent_used = round((spent / limit) * 100, 2)
        else:
            percent_used = 100.0 if spent > 0 else 0.0
        status.append({
            "category": budget.category,
            "limit": limit,
            "spent": spent,
            "remaining": round(limit - spent, 2),
            "percentUsed": percent_used,
            "over": spent > limit,
        })
    return status


@dataclass
class ExpenseFilters:
    start: Optional[dt.date] = None
    end: Optional[dt.date] = None
    month: Optional[str] = None  # "YYYY-MM"
    category: Optional[str] = None
    search: Optional[str] = None
    sort: str = "date"
    order: str = "desc"


def filter_expenses(expenses: Iterable[Any], filters: ExpenseFilters) -> List[Any]:
    filtered = list(expenses)
    if filters.start or filters.end:
        filtered = [
            e
            for e in filtered
            if (filters.start is None or e.date >= filters.start) and (filters.end is None or e.date <= filters.end)
        ]
    if filters.month:
        filtered = [e for e in filtered if month_key(e.date) == filters.month]
    if filters.category and filters.category != "all":
        filtered = [e for e in filtered if e.category == filters.category]
    if filters.search:
        needle = filters.search.lower()
        filtered = [e for e in filtered if needle in (e.notes or "").lower()]
    return filtered


def sort_expenses(expenses: Iterable[Any], key: str = "date", order: str = "desc") -> List[Any]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {key}")
    if order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order: {order}")
    # Stable sort; ties keep their incoming order
    return sorted(expenses, key=lambda e: getattr(e, key), reverse=order == "desc")


def query_expenses(expenses: Iterable[Any], filters: ExpenseFilters) -> List[Any]:
    return sort_expenses(filter_expenses(expenses, filters), filters.sort, filters.order)
