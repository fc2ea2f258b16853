"""Utility helpers for database setup and transactional writes."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Tuple

from flask import Flask
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import StoreFault
from .models import Category, GLOBAL_STATE_ID, GlobalState, Icon, db

logger = logging.getLogger(__name__)


def init_db(app: Flask, seed: bool = True) -> None:
    """Bind the extension to ``app``, create tables and seed defaults."""
    db.init_app(app)
    with app.app_context():
        db.create_all()
        if seed:
            seed_defaults(
                app.config.get("DEFAULT_CATEGORIES") or [],
                float(app.config.get("DEFAULT_MONTHLY_BUDGET", 0.0)),
            )


def seed_defaults(categories: Iterable[Tuple[str, str]], monthly_budget: float) -> None:
    """Insert default categories into an empty store and create the global state."""
    if db.session.execute(db.select(db.func.count(Category.id))).scalar_one() == 0:
        rows = [Category(name=name, icon=Icon.coerce(icon).value) for name, icon in categories]
        if rows:
            logger.info("Initializing %d default categories", len(rows))
            db.session.add_all(rows)
            db.session.commit()
    ensure_global_state(monthly_budget)


def ensure_global_state(monthly_budget: float) -> GlobalState:
    """Return the singleton, creating it with defaults on first use.

    Two initialisers racing on an empty table collide on the pinned primary
    key; the loser rolls back and reads the winner's row.
    """
    state = db.session.get(GlobalState, GLOBAL_STATE_ID)
    if state is not None:
        return state
    state = GlobalState(id=GLOBAL_STATE_ID, monthly_budget=monthly_budget, archived_spend=0.0)
    db.session.add(state)
    try:
        db.session.commit()
        logger.info("Initialized global state with monthly budget %.2f", monthly_budget)
    except IntegrityError:
        db.session.rollback()
        state = db.session.get(GlobalState, GLOBAL_STATE_ID)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreFault(str(exc)) from exc
    return state


def lock_global_state() -> Optional[GlobalState]:
    """Load the singleton row for update, or None when it does not exist."""
    stmt = db.select(GlobalState).where(GlobalState.id == GLOBAL_STATE_ID).with_for_update()
    return db.session.execute(stmt).scalar_one_or_none()


@contextmanager
def unit_of_work() -> Iterator[Session]:
    """Commit everything done in the block at once, or nothing."""
    session = db.session
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database error, transaction rolled back")
        raise StoreFault(str(exc.orig) if getattr(exc, "orig", None) else str(exc)) from exc
    except Exception:
        session.rollback()
        raise
