"""SQLAlchemy models for the ExpenseWise ledger store."""

from __future__ import annotations

import datetime as dt
import enum
from typing import Dict, List, Optional

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

PROTECTED_CATEGORY = "Other"
GLOBAL_STATE_ID = 1


class Icon(str, enum.Enum):
    """Closed set of icon keys a category may carry."""

    GROCERIES = "groceries"
    TRANSPORT = "transport"
    HOUSING = "housing"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    EDUCATION = "education"
    OTHER = "other"

    @classmethod
    def keys(cls) -> List[str]:
        return [icon.value for icon in cls]

    @classmethod
    def coerce(cls, value: Optional[str]) -> "Icon":
        """Map free text onto a member, falling back to ``Icon.OTHER``."""
        if not isinstance(value, str):
            return FALLBACK_ICON
        key = value.strip().lower()
        try:
            return cls(key)
        except ValueError:
            return FALLBACK_ICON


FALLBACK_ICON = Icon.OTHER


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    icon = db.Column(db.String(32), nullable=False, default=FALLBACK_ICON.value)
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "icon": self.icon}


db.Index("uq_categories_name_lower", db.func.lower(Category.name), unique=True)


class Expense(db.Model):
    __tablename__ = "expenses"
    __table_args__ = (db.CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),)

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(120), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": str(self.id),
            "date": self.date.isoformat(),
            "amount": self.amount,
            "category": self.category,
            "notes": self.notes or "",
        }


class Budget(db.Model):
    __tablename__ = "budgets"
    __table_args__ = (db.CheckConstraint("amount >= 0", name="ck_budgets_amount_non_negative"),)

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(120), unique=True, nullable=False)
    amount = db.Column(db.Float, nullable=False)

    def to_dict(self) -> Dict[str, object]:
        return {"category": self.category, "amount": self.amount}


class GlobalState(db.Model):
    """Singleton row; the primary key is pinned to ``GLOBAL_STATE_ID``."""

    __tablename__ = "global_state"
    __table_args__ = (
        db.CheckConstraint(f"id = {GLOBAL_STATE_ID}", name="ck_global_state_singleton"),
        db.CheckConstraint("monthly_budget >= 0", name="ck_global_state_budget_non_negative"),
        db.CheckConstraint("archived_spend >= 0", name="ck_global_state_archived_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    monthly_budget = db.Column(db.Float, nullable=False)
    archived_spend = db.Column(db.Float, nullable=False, default=0.0)

    def to_dict(self) -> Dict[str, float]:
        return {"monthlyBudget": self.monthly_budget, "archivedSpend": self.archived_spend}
