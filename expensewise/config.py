"""Configuration utilities for ExpenseWise.

Provides the default categories, the keyword rules used to suggest category
icons offline, and helpers to load settings from the environment (``.env`` is
honoured) and from an optional JSON file.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent
_DEFAULT_DB_PATH = PROJECT_ROOT / "expensewise.db"

DEFAULT_MONTHLY_BUDGET = 100000.0
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_ICON_TIMEOUT = 5.0

# (name, icon) pairs seeded into an empty store. "Other" must stay last.
DEFAULT_CATEGORIES: List[Tuple[str, str]] = [
    ("Groceries", "groceries"),
    ("Transport", "transport"),
    ("Housing", "housing"),
    ("Entertainment", "entertainment"),
    ("Health", "health"),
    ("Education", "education"),
    ("Other", "other"),
]

# Keys: icon keys. Values: lowercase keywords searched in a category name.
DEFAULT_ICON_KEYWORDS: Dict[str, List[str]] = {
    "groceries": ["grocery", "groceries", "food", "supermarket", "market", "dining", "restaurant", "snack", "coffee"],
    "transport": ["transport", "travel", "fuel", "petrol", "gas", "uber", "taxi", "bus", "train", "metro", "car", "parking"],
    "housing": ["rent", "housing", "home", "house", "mortgage", "utilities", "electricity", "water", "furniture"],
    "entertainment": ["movie", "cinema", "entertainment", "music", "games", "gaming", "concert", "netflix", "subscription"],
    "health": ["health", "doctor", "medical", "medicine", "pharmacy", "gym", "fitness", "dentist", "insurance"],
    "education": ["education", "school", "college", "course", "books", "tuition", "class", "exam"],
    "other": [],
}

ICON_CLASSIFIERS = ("gemini", "keywords", "none")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc


@dataclass
class AppConfig:
    database_url: str = f"sqlite:///{_DEFAULT_DB_PATH}"
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    icon_classifier: str = "keywords"
    icon_timeout: float = DEFAULT_ICON_TIMEOUT
    default_monthly_budget: float = DEFAULT_MONTHLY_BUDGET
    log_level: str = "INFO"
    cors_origins: str = "*"
    default_categories: List[Tuple[str, str]] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    icon_keywords: Dict[str, List[str]] = field(default_factory=lambda: dict(DEFAULT_ICON_KEYWORDS))

    @staticmethod
    def load(
        config_path: Optional[str | Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """Load config from the environment, then overlay a JSON file if given.

        JSON format:
        {
          "default_categories": [{"name": "Pets", "icon": "other"}],
          "icon_keywords": {"health": ["vet", "clinic"]}
        }
        """

        if environ is None:
            load_dotenv()
            environ = os.environ

        api_key = environ.get("GEMINI_API_KEY") or environ.get("API_KEY") or None
        classifier = (environ.get("ICON_CLASSIFIER") or ("gemini" if api_key else "keywords")).lower()
        if classifier not in ICON_CLASSIFIERS:
            raise ValueError(f"ICON_CLASSIFIER must be one of {', '.join(ICON_CLASSIFIERS)}")

        cfg = AppConfig(
            database_url=environ.get("DATABASE_URL") or f"sqlite:///{_DEFAULT_DB_PATH}",
            gemini_api_key=api_key,
            gemini_model=environ.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            icon_classifier=classifier,
            icon_timeout=_env_float(environ, "ICON_TIMEOUT", DEFAULT_ICON_TIMEOUT),
            default_monthly_budget=_env_float(environ, "DEFAULT_MONTHLY_BUDGET", DEFAULT_MONTHLY_BUDGET),
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
            cors_origins=environ.get("CORS_ORIGINS") or "*",
        )

        if config_path:
            p = Path(config_path)
            if p.exists():
                with p.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
                if isinstance(raw, dict):
                    if isinstance(raw.get("icon_keywords"), dict):
                        # Normalize all keywords to lowercase
                        cfg.icon_keywords = {
                            str(icon).lower(): [str(k).lower() for k in (kw or [])]
                            for icon, kw in raw["icon_keywords"].items()
                        }
                    if isinstance(raw.get("default_categories"), list):
                        cfg.default_categories = [
                            (str(c["name"]), str(c.get("icon") or "other"))
                            for c in raw["default_categories"]
                            if isinstance(c, dict) and c.get("name")
                        ]
        return cfg

    def to_flask(self) -> Dict[str, object]:
        """Map the settings onto Flask ``app.config`` keys."""
        return {
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "GEMINI_API_KEY": self.gemini_api_key,
            "GEMINI_MODEL": self.gemini_model,
            "ICON_CLASSIFIER": self.icon_classifier,
            "ICON_TIMEOUT": self.icon_timeout,
            "DEFAULT_MONTHLY_BUDGET": self.default_monthly_budget,
            "LOG_LEVEL": self.log_level,
            "CORS_ORIGINS": self.cors_origins,
            "DEFAULT_CATEGORIES": list(self.default_categories),
            "ICON_KEYWORDS": dict(self.icon_keywords),
        }


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
