"""
ERP Lens Core - Reasoning Context
Statistics + bounded sample + prompt-relevant rows for the insight model
"""

import json
import re
from typing import Any, Optional

from .column_types import get_headers
from .profiling import compute_dataset_statistics
from .sampling import DEFAULT_SAMPLE_LIMIT, smart_sample

CONTEXT_ROW_CAP = 200
RELEVANT_ROW_LIMIT = 20

# e.g. "Check MO-2025001 status" -> ["Check", "MO-2025001", "status"]
_TOKEN_PATTERN = re.compile(r'[a-zA-Z0-9一-龥\-_]{3,}')
PROMPT_STOPWORDS = {'check', 'status', 'what', 'show', 'tell', 'about', 'analysis'}


def _row_key(row: dict[str, Any]) -> str:
    return json.dumps(row, ensure_ascii=False, default=str)


def extract_prompt_keywords(prompt: Optional[str]) -> list[str]:
    if not prompt:
        return []
    tokens = _TOKEN_PATTERN.findall(prompt)
    return [t.lower() for t in tokens if t.lower() not in PROMPT_STOPWORDS]


def find_relevant_rows(rows: list[dict[str, Any]], prompt: Optional[str], limit: int = RELEVANT_ROW_LIMIT) -> list[dict[str, Any]]:
    """Rows mentioning a specific token from the prompt (order numbers, part codes) so they reach the model"""
    keywords = extract_prompt_keywords(prompt)
    if not keywords or not rows:
        return []

    matches = []
    for row in rows:
        if len(matches) >= limit:
            break
        row_text = _row_key(row).lower()
        if any(k in row_text for k in keywords):
            matches.append(row)
    return matches


def build_analysis_context(
    rows: list[dict[str, Any]],
    user_prompt: Optional[str] = None,
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    row_cap: int = CONTEXT_ROW_CAP,
    relevant_limit: int = RELEVANT_ROW_LIMIT,
    seed: Optional[int] = None,
    statistics: Optional[dict] = None,
) -> dict:
    """Full-scope statistics plus a representative subset of rows, relevant rows first."""
    if statistics is None:
        statistics = compute_dataset_statistics(rows)
    context_rows = smart_sample(rows, sample_limit, seed=seed)

    relevant = find_relevant_rows(rows, user_prompt, limit=relevant_limit)
    if relevant:
        unique: dict[str, dict[str, Any]] = {}
        for row in relevant + context_rows:
            unique.setdefault(_row_key(row), row)
        context_rows = list(unique.values())[:row_cap]

    return {
        "statistics": statistics,
        "headers": get_headers(context_rows) or get_headers(rows),
        "rows": context_rows,
        "relevant_row_count": len(relevant),
    }


def render_context_prompt(context: dict) -> str:
    """Dataset section of the insight prompt."""
    stats = context["statistics"]
    date_range = stats["date_range"]
    return f"""I have provided a dataset.

**DATASET STATISTICS (Full Scope - Use this for totals):**
- Total Records: {stats['row_count']}
- Date Range: {date_range['start']} to {date_range['end']}
- Numeric Summaries: {json.dumps(stats['numeric_stats'], ensure_ascii=False, indent=2)}

**DATA CONTEXT (Sample + Relevant Rows):**
- Headers: {', '.join(context['headers'])}
- Rows: {json.dumps(context['rows'], ensure_ascii=False, default=str)}

(Note: The 'Rows' provided are a representative sample. If specific rows matching the user's query were found, they are included here.)
"""
