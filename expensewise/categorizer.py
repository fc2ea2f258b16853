"""Category icon suggestion.

Two classifiers can suggest an icon for a newly created category: a keyword
matcher over the normalized category name, and a Gemini-backed one that asks
the model to pick from the available icon keys. ``suggest_icon`` wraps either
with a timeout and always lands on a member of ``Icon``.
"""

from __future__ import annotations

import logging
import re
import string
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import DEFAULT_GEMINI_MODEL, DEFAULT_ICON_KEYWORDS, DEFAULT_ICON_TIMEOUT
from .models import FALLBACK_ICON, Icon

logger = logging.getLogger(__name__)

_PUNCT_TABLE = str.maketrans({c: " " for c in string.punctuation})

ICON_WORKERS = 4
_EXECUTOR = ThreadPoolExecutor(max_workers=ICON_WORKERS, thread_name_prefix="icon-classifier")

ICON_PROMPT = """
From the following list of available icon names, which one best represents the category "{name}"?
Available icons: {icons}.
Please respond with ONLY the single most appropriate icon name from the list. Do not add any explanation or punctuation.
"""


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text.lower().translate(_PUNCT_TABLE)).strip()


class KeywordIconClassifier:
    """Suggest an icon when a rule keyword appears in the category name.

    Order of icons matters only insofar as first match wins when a keyword
    appears under several icons.
    """

    def __init__(self, rules: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        rules = rules if rules is not None else DEFAULT_ICON_KEYWORDS
        # Precompute keyword -> icon, keep first occurrence
        self._kw_to_icon: Dict[str, str] = {}
        for icon, kws in rules.items():
            for kw in kws or []:
                kw = _normalize(kw)
                if kw and kw not in self._kw_to_icon:
                    self._kw_to_icon[kw] = icon

    def suggest(self, name: str, icon_keys: Sequence[str]) -> Optional[str]:
        norm = _normalize(name)
        words = set(norm.split())
        # Whole words first so "car" does not match inside "career"
        for kw, icon in self._kw_to_icon.items():
            if icon in icon_keys and (kw in words or (" " in kw and kw in norm)):
                return icon
        for kw, icon in self._kw_to_icon.items():
            if icon in icon_keys and len(kw) > 3 and kw in norm:
                return icon
        return None


class GeminiIconClassifier:
    """Ask Gemini to choose one of the icon keys for a category name."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: float = DEFAULT_ICON_TIMEOUT,
        client: Any = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("GEMINI_API_KEY is not configured")
            from google import genai

            self._client = genai.Client(
                api_key=self.api_key,
                http_options={"timeout": int(self.timeout * 1000)},
            )
        return self._client

    def suggest(self, name: str, icon_keys: Sequence[str]) -> Optional[str]:
        prompt = ICON_PROMPT.format(name=name, icons=", ".join(icon_keys))
        response = self.client.models.generate_content(model=self.model, contents=prompt)
        return (response.text or "").strip().lower()


def suggest_icon(name: str, classifier: Any = None, timeout: float = DEFAULT_ICON_TIMEOUT) -> Icon:
    """Return the classifier's suggestion, or the fallback icon.

    The classifier runs on a worker thread; when it raises, answers with a key
    outside ``Icon`` or takes longer than ``timeout`` seconds, the fallback is
    returned and the caller carries on.
    """

    if classifier is None:
        return FALLBACK_ICON
    icon_keys: List[str] = Icon.keys()
    future = _EXECUTOR.submit(classifier.suggest, name, icon_keys)
    try:
        raw = future.result(timeout=timeout)
    except FuturesTimeout:
        # A stuck call keeps its worker; one still queued is dropped.
        future.cancel()
        logger.warning("Icon suggestion for %r timed out after %.1fs", name, timeout)
        return FALLBACK_ICON
    except Exception:  # noqa: BLE001
        logger.warning("Icon suggestion for %r failed", name, exc_info=True)
        return FALLBACK_ICON

    icon = Icon.coerce(raw)
    if raw and icon is FALLBACK_ICON and raw != FALLBACK_ICON.value:
        logger.info("Icon suggestion %r for %r is not a known icon", raw, name)
    return icon


def build_classifier(settings: Mapping[str, Any]) -> Any:
    """Create the classifier selected by ``ICON_CLASSIFIER``."""
    kind = (settings.get("ICON_CLASSIFIER") or "keywords").lower()
    if kind == "none":
        return None
    if kind == "gemini":
        api_key = settings.get("GEMINI_API_KEY")
        if api_key:
            return GeminiIconClassifier(
                api_key,
                model=settings.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
                timeout=float(settings.get("ICON_TIMEOUT") or DEFAULT_ICON_TIMEOUT),
            )
        logger.warning("ICON_CLASSIFIER=gemini but no API key is set; using keyword rules")
    return KeywordIconClassifier(settings.get("ICON_KEYWORDS"))
