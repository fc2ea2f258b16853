"""Command-line interface for ExpenseWise.

Usage:
  python -m expensewise.cli serve --port 5000
  python -m expensewise.cli summary --json out/summary.json
  python -m expensewise.cli reset --yes

Options allow a JSON config with default categories and icon keyword rules.
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from . import ledger
from .reports import build_summary, format_text_report, save_json
from .webapp import create_app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="ExpenseWise expense tracker")
    p.add_argument("--config", "-c", help="Path to JSON config with default categories/icon rules")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--debug", action="store_true")

    sub.add_parser("init-db", help="Create tables and seed default categories")

    summary = sub.add_parser("summary", help="Print the spending summary")
    summary.add_argument("--json", dest="json_out", help="Write summary JSON to path")

    reset = sub.add_parser("reset", help="Fold current spend into the budget and clear expenses")
    reset.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    app = create_app(config_path=args.config)

    if args.command == "serve":
        app.run(host=args.host, port=args.port, debug=args.debug)
        return 0

    with app.app_context():
        default_budget = float(app.config["DEFAULT_MONTHLY_BUDGET"])
        if args.command == "init-db":
            state = ledger.get_state(default_budget)
            print(f"Database ready: {len(ledger.list_categories())} categories, "
                  f"monthly budget {state.monthly_budget:.2f}")
            return 0

        if args.command == "summary":
            snap = ledger.snapshot(default_budget)
            summary = build_summary(snap.expenses, snap.budgets, snap.state.monthly_budget, snap.state.archived_spend)
            print(format_text_report(summary))
            if args.json_out:
                save_json(summary, args.json_out)
                print(f"\nSaved JSON summary to: {args.json_out}")
            return 0

        if args.command == "reset":
            if not args.yes:
                answer = input("This deletes every expense. Continue? [y/N] ")
                if answer.strip().lower() not in {"y", "yes"}:
                    print("Aborted.")
                    return 1
            state = ledger.reset()
            print(f"Reset complete. Monthly budget is now {state.monthly_budget:.2f}")
            return 0
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
