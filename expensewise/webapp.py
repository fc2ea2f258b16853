"""Flask REST interface for ExpenseWise."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from . import ledger
from .advisor import SpendingAdvisor
from .analytics import SORT_KEYS, SORT_ORDERS, ExpenseFilters, month_key, query_expenses
from .categorizer import build_classifier
from .config import PROJECT_ROOT, AppConfig, configure_logging
from .db import init_db
from .errors import LedgerError, StoreFault, ValidationError
from .payloads import parse_date, parse_optional_date, require_mapping
from .reports import build_summary

logger = logging.getLogger(__name__)

EXTENSION_KEY = "expensewise"


def _parse_filters(args: Mapping[str, str]) -> ExpenseFilters:
    sort = (args.get("sort") or "date").lower()
    order = (args.get("order") or "desc").lower()
    # Accept the dashboard's combined form, e.g. sort=amount_desc
    if "_" in sort and not args.get("order"):
        sort, _, order = sort.partition("_")
    if sort not in SORT_KEYS:
        raise ValidationError(f"sort must be one of {', '.join(SORT_KEYS)}")
    if order not in SORT_ORDERS:
        raise ValidationError(f"order must be one of {', '.join(SORT_ORDERS)}")
    month = (args.get("month") or "").strip() or None
    if month:
        month = month_key(parse_date(f"{month}-01", "month"))
    return ExpenseFilters(
        start=parse_optional_date(args.get("start"), "start"),
        end=parse_optional_date(args.get("end"), "end"),
        month=month,
        category=(args.get("category") or "").strip() or None,
        search=(args.get("q") or args.get("search") or "").strip() or None,
        sort=sort,
        order=order,
    )


def _json_body() -> Mapping[str, Any]:
    return require_mapping(request.get_json(silent=True))


def _default_budget() -> float:
    return float(current_app.config.get("DEFAULT_MONTHLY_BUDGET", 0.0))


def _services() -> Dict[str, Any]:
    return current_app.extensions[EXTENSION_KEY]


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(LedgerError)
    def handle_ledger_error(exc: LedgerError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(exc: SQLAlchemyError):
        logger.exception("Unhandled database error")
        fault = StoreFault()
        return jsonify(fault.to_dict()), fault.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"message": exc.description or exc.name}), exc.code


def create_app(
    config_overrides: Optional[Mapping[str, Any]] = None,
    config_path: Optional[str] = None,
) -> Flask:
    app = Flask(__name__)
    cfg = AppConfig.load(_resolve_config_path(config_path))
    app.config.update(cfg.to_flask())
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.json.sort_keys = False
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    CORS(app, origins=app.config.get("CORS_ORIGINS", "*"))
    init_db(app, seed=app.config.get("SEED_DEFAULTS", True))

    app.extensions[EXTENSION_KEY] = {
        "icon_classifier": build_classifier(app.config),
        "advisor": SpendingAdvisor(
            app.config.get("GEMINI_API_KEY"),
            model=app.config.get("GEMINI_MODEL") or cfg.gemini_model,
        ),
    }
    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    # --- Global state ---

    @app.get("/state")
    def get_state():
        return jsonify(ledger.get_state(_default_budget()).to_dict())

    @app.post("/state")
    def update_state():
        state = ledger.update_state(_json_body(), _default_budget())
        return jsonify(state.to_dict())

    # --- Expenses ---

    @app.get("/expenses")
    def list_expenses():
        filters = _parse_filters(request.args)
        expenses = query_expenses(ledger.list_expenses(), filters)
        return jsonify([e.to_dict() for e in expenses])

    @app.post("/expenses")
    def create_expense():
        expense = ledger.create_expense(_json_body())
        return jsonify(expense.to_dict()), 201

    @app.put("/expenses/<expense_id>")
    def update_expense(expense_id: str):
        expense = ledger.update_expense(expense_id, _json_body())
        return jsonify(expense.to_dict())

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        ledger.delete_expense(expense_id)
        return jsonify({"message": "Expense deleted"})

    @app.post("/expenses/reset")
    def reset_expenses():
        return jsonify(ledger.reset().to_dict())

    # --- Categories ---

    @app.get("/categories")
    def list_categories():
        return jsonify([c.to_dict() for c in ledger.list_categories()])

    @app.post("/categories")
    def add_category():
        category = ledger.add_category(
            _json_body().get("name"),
            classifier=_services()["icon_classifier"],
            timeout=float(app.config.get("ICON_TIMEOUT", 5.0)),
        )
        return jsonify(category.to_dict()), 201

    @app.delete("/categories/<path:name>")
    def delete_category(name: str):
        ledger.delete_category(name)
        return jsonify({"message": "Category and associated data deleted"})

    # --- Budgets ---

    @app.get("/budgets")
    def list_budgets():
        return jsonify([b.to_dict() for b in ledger.list_budgets()])

    @app.post("/budgets")
    def set_budget():
        body = _json_body()
        budget = ledger.set_budget(body.get("category"), body.get("amount"))
        return jsonify(budget.to_dict()), 201

    # --- Reports ---

    @app.get("/summary")
    def summary():
        snap = ledger.snapshot(_default_budget())
        return jsonify(
            build_summary(snap.expenses, snap.budgets, snap.state.monthly_budget, snap.state.archived_spend)
        )

    @app.post("/advisor")
    def advisor():
        snap = ledger.snapshot(_default_budget())
        analysis = _services()["advisor"].analyze(
            [e.to_dict() for e in snap.expenses],
            [b.to_dict() for b in snap.budgets],
            [c.to_dict() for c in snap.categories],
        )
        return jsonify({"analysis": analysis})

    return app


def _resolve_config_path(config_path: Optional[str]) -> Optional[Path]:
    if not config_path:
        return None
    path = Path(config_path)
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path
