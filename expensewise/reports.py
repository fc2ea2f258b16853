"""Reporting utilities.

Formats analytics into JSON-serializable dicts and human-readable text.
"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from . import analytics as an


def build_summary(
    expenses: Iterable[Any],
    budgets: Iterable[Any],
    monthly_budget: float,
    archived_spend: float,
    today: Optional[dt.date] = None,
) -> Dict[str, Any]:
    expenses = list(expenses)
    budgets = list(budgets)
    today = today or dt.date.today()
    return {
        "date": today.isoformat(),
        "monthlyBudget": monthly_budget,
        "archivedSpend": archived_spend,
        "todayTotal": an.todays_total(expenses, today),
        "totalExpenses": an.total_expenses(expenses),
        "totalSpendToDate": an.total_spend_to_date(expenses, archived_spend),
        "remainingBudget": an.remaining_budget(monthly_budget, expenses, archived_spend),
        "categoryTotals": an.spending_by_category(expenses),
        "dailyTotals": an.daily_totals(expenses),
        "monthlyTotals": an.monthly_totals(expenses),
        "budgetStatus": an.budget_status(expenses, budgets),
        "expenseCount": len(expenses),
    }


def format_text_report(summary: Dict[str, Any], currency: str = "₹") -> str:
    lines: List[str] = []
    lines.append("=== ExpenseWise Summary ===")
    lines.append(f"Monthly budget:  {currency}{summary['monthlyBudget']:.2f}")
    lines.append(f"Spent to date:   {currency}{summary['totalSpendToDate']:.2f}")
    lines.append(f"Remaining:       {currency}{summary['remainingBudget']:.2f}")
    lines.append(f"Spent today:     {currency}{summary['todayTotal']:.2f}")
    lines.append("")

    lines.append("-- Spend by Category --")
    for cat, amt in summary["categoryTotals"].items():
        lines.append(f"{cat:15} {currency}{amt:.2f}")
    lines.append("")

    status = summary.get("budgetStatus")
    if status:
        lines.append("-- Budget Status --")
        for row in status:
            flag = "  OVER" if row["over"] else ""
            lines.append(
                f"{row['category']:15} Limit {currency}{row['limit']:.2f}  Spent {currency}{row['spent']:.2f}"
                f"  Remaining {currency}{row['remaining']:.2f}{flag}"
            )
        lines.append("")

    lines.append("-- Monthly Totals --")
    for m, amt in summary["monthlyTotals"].items():
        lines.append(f"{m} | {currency}{amt:.2f}")
    return "\n".join(lines)


def save_json(summary: Dict[str, Any], path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, ensure_ascii=False)
