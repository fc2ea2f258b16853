"""Reconciliation rules for the ledger store.

Every mutating function runs inside one ``unit_of_work`` so that callers
never observe half of a reset or half of a category cascade. Functions must
be called inside a Flask application context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from .categorizer import suggest_icon
from .config import DEFAULT_ICON_TIMEOUT, DEFAULT_MONTHLY_BUDGET
from .db import ensure_global_state, lock_global_state, unit_of_work
from .errors import DuplicateCategory, NotFound, NotInitialized, Protected, UnknownCategory
from .models import PROTECTED_CATEGORY, Budget, Category, Expense, GlobalState, db
from .payloads import parse_amount, parse_expense, parse_name, parse_state_update

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    expenses: List[Expense]
    categories: List[Category]
    budgets: List[Budget]
    state: GlobalState


# --- Categories ---

def list_categories() -> List[Category]:
    return list(db.session.execute(db.select(Category).order_by(Category.id)).scalars())


def find_category(name: str) -> Optional[Category]:
    """Case-insensitive lookup."""
    stmt = db.select(Category).where(db.func.lower(Category.name) == name.lower())
    return db.session.execute(stmt).scalars().first()


def _require_category(name: str) -> None:
    exists = db.session.execute(db.select(Category.id).where(Category.name == name)).first()
    if exists is None:
        raise UnknownCategory(f"Unknown category: {name}")


def add_category(name: Any, classifier: Any = None, timeout: float = DEFAULT_ICON_TIMEOUT) -> Category:
    name = parse_name(name)
    if find_category(name) is not None:
        raise DuplicateCategory()

    # Outside the transaction; may take up to ``timeout`` seconds.
    icon = suggest_icon(name, classifier, timeout)

    with unit_of_work():
        if find_category(name) is not None:
            raise DuplicateCategory()
        category = Category(name=name, icon=icon.value)
        db.session.add(category)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise DuplicateCategory() from exc
    logger.info("Created category %r with icon %r", category.name, category.icon)
    return category


def delete_category(name: str) -> Dict[str, int]:
    """Remove a category with its budget and expenses.

    Missing rows are not errors; the returned counts say what was removed.
    """

    if name == PROTECTED_CATEGORY:
        raise Protected(f"The '{PROTECTED_CATEGORY}' category cannot be deleted")
    with unit_of_work():
        removed_expenses = db.session.execute(db.delete(Expense).where(Expense.category == name)).rowcount
        removed_budgets = db.session.execute(db.delete(Budget).where(Budget.category == name)).rowcount
        removed_categories = db.session.execute(db.delete(Category).where(Category.name == name)).rowcount
    counts = {"categories": removed_categories, "budgets": removed_budgets, "expenses": removed_expenses}
    logger.info("Deleted category %r: %s", name, counts)
    return counts


# --- Budgets ---

def list_budgets() -> List[Budget]:
    return list(db.session.execute(db.select(Budget).order_by(Budget.category)).scalars())


def set_budget(category: Any, amount: Any) -> Budget:
    category = parse_name(category, "category")
    amount = parse_amount(amount)
    with unit_of_work():
        _require_category(category)
        budget = db.session.execute(db.select(Budget).where(Budget.category == category)).scalar_one_or_none()
        if budget is None:
            budget = Budget(category=category, amount=amount)
            db.session.add(budget)
        else:
            budget.amount = amount
    return budget


# --- Expenses ---

def list_expenses() -> List[Expense]:
    stmt = db.select(Expense).order_by(Expense.date.desc(), Expense.id.desc())
    return list(db.session.execute(stmt).scalars())


def _get_expense(expense_id: Any) -> Optional[Expense]:
    text = str(expense_id)
    if not text.isdigit():
        return None
    return db.session.get(Expense, int(text))


def create_expense(data: Any) -> Expense:
    fields = parse_expense(data)
    with unit_of_work():
        _require_category(fields["category"])
        expense = Expense(**fields)
        db.session.add(expense)
    return expense


def update_expense(expense_id: Any, data: Any) -> Expense:
    fields = parse_expense(data, partial=True)
    with unit_of_work():
        expense = _get_expense(expense_id)
        if expense is None:
            raise NotFound("Expense not found")
        if "category" in fields:
            _require_category(fields["category"])
        for key, value in fields.items():
            setattr(expense, key, value)
    return expense


def delete_expense(expense_id: Any) -> bool:
    with unit_of_work():
        expense = _get_expense(expense_id)
        if expense is None:
            return False
        db.session.delete(expense)
    return True


# --- Global state ---

def get_state(default_monthly_budget: float = DEFAULT_MONTHLY_BUDGET) -> GlobalState:
    return ensure_global_state(default_monthly_budget)


def update_state(data: Any, default_monthly_budget: float = DEFAULT_MONTHLY_BUDGET) -> GlobalState:
    """Apply a partial update; fields left out keep their value."""
    fields = parse_state_update(data)
    ensure_global_state(default_monthly_budget)
    with unit_of_work():
        state = lock_global_state()
        if state is None:
            raise NotInitialized()
        for attr, value in fields.items():
            setattr(state, attr, value)
    return state


def reset() -> GlobalState:
    """Fold current spend into the monthly budget and clear the expenses.

    The new budget is what is left of the allowance after current expenses
    and archived spend, floored at zero. The archived counter is zeroed.
    Only the expenses that were summed are deleted, so an expense inserted
    concurrently is neither lost nor counted twice.
    """

    with unit_of_work():
        state = lock_global_state()
        if state is None:
            raise NotInitialized()
        rows = db.session.execute(db.select(Expense.id, Expense.amount)).all()
        total_spend = sum(row.amount for row in rows) + state.archived_spend
        new_budget = round(max(0.0, state.monthly_budget - total_spend), 2)
        ids = [row.id for row in rows]
        if ids:
            db.session.execute(db.delete(Expense).where(Expense.id.in_(ids)))
        state.monthly_budget = new_budget
        state.archived_spend = 0.0
    logger.info("Reset ledger: cleared %d expenses, monthly budget now %.2f", len(ids), new_budget)
    return state


def snapshot(default_monthly_budget: float = DEFAULT_MONTHLY_BUDGET) -> Snapshot:
    return Snapshot(
        expenses=list_expenses(),
        categories=list_categories(),
        budgets=list_budgets(),
        state=get_state(default_monthly_budget),
    )
