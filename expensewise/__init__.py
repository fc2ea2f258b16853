"""ExpenseWise personal expense tracker package."""

__all__ = [
    "config",
    "errors",
    "models",
    "db",
    "payloads",
    "ledger",
    "categorizer",
    "analytics",
    "reports",
    "advisor",
    "webapp",
]

__version__ = "0.1.0"
