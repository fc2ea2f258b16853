"""AI spending analysis backed by Gemini."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from .config import DEFAULT_GEMINI_MODEL

logger = logging.getLogger(__name__)

RECENT_EXPENSE_LIMIT = 50

NO_EXPENSES_MESSAGE = "There are no expenses to analyze. Please add some expenses first."
NOT_CONFIGURED_MESSAGE = (
    "There was an error with the AI service. Please ensure your API key is configured correctly."
)
FAILURE_MESSAGE = (
    "Sorry, I couldn't complete the analysis due to an unexpected error. Please try again later."
)

ANALYSIS_PROMPT = """
You are a friendly and insightful financial advisor AI. Your goal is to help the user understand their spending habits and find ways to save money.
Analyze the provided JSON data about their recent expenses and budgets.

**User's Financial Data:**
- **Currency:** Indian Rupee (₹)
- **Spending Categories:** {categories}
- **Category Budgets:** {budgets}
- **Recent Expenses (up to {limit} entries):** {expenses}

**Your Task:**
Based on the data, provide a concise and actionable financial analysis in markdown format. Structure your response with the following sections:

## Spending Overview
Provide a brief, high-level summary of the user's spending. Mention the total amount spent and the top spending categories.

## Budget Performance
Compare the spending in each category against its budget. Identify which categories are over, under, or on budget. Use a list format.

## Key Insights
Point out 1-2 interesting or significant patterns you've noticed. This could be high spending on a particular day, frequent small purchases, or unexpected expenses.

## Actionable Recommendations
Offer 2-3 specific, practical, and easy-to-implement tips for financial improvement based on your analysis.

**Formatting Rules:**
- Use '##' for main headings and '###' for subheadings if needed.
- Use '*' for list items.
- Use '**' to bold key terms and figures (e.g., **₹1,234** or **Groceries**).
- Keep the tone encouraging and helpful.
- The entire response should be in English.
"""


def recent_expenses(expenses: Iterable[Dict[str, Any]], limit: int = RECENT_EXPENSE_LIMIT) -> List[Dict[str, Any]]:
    ordered = sorted(expenses, key=lambda e: (e["date"], int(e["id"]) if str(e.get("id", "")).isdigit() else 0))
    return ordered[-limit:]


def build_prompt(
    expenses: Iterable[Dict[str, Any]],
    budgets: Iterable[Dict[str, Any]],
    categories: Iterable[Dict[str, Any]],
) -> str:
    return ANALYSIS_PROMPT.format(
        categories=json.dumps([c["name"] for c in categories], ensure_ascii=False),
        budgets=json.dumps(list(budgets), ensure_ascii=False),
        limit=RECENT_EXPENSE_LIMIT,
        expenses=json.dumps(recent_expenses(expenses), indent=2, ensure_ascii=False),
    )


class SpendingAdvisor:
    def __init__(self, api_key: Optional[str], model: str = DEFAULT_GEMINI_MODEL, client: Any = None) -> None:
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._client or self.api_key)

    @property
    def client(self) -> Any:
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def analyze(
        self,
        expenses: List[Dict[str, Any]],
        budgets: List[Dict[str, Any]],
        categories: List[Dict[str, Any]],
    ) -> str:
        """Return a markdown analysis, or a message the user can read on failure."""
        if not expenses:
            return NO_EXPENSES_MESSAGE
        if not self.configured:
            return NOT_CONFIGURED_MESSAGE
        prompt = build_prompt(expenses, budgets, categories)
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error calling Gemini API")
            if "API key not valid" in str(exc):
                return NOT_CONFIGURED_MESSAGE
            return FAILURE_MESSAGE
        text = (response.text or "").strip()
        return text or FAILURE_MESSAGE
