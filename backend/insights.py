"""
ERP Lens Backend - Insights
One LLM pass that turns dataset statistics + sample into a summary, insights and chart proposals
"""

import json
import time
from typing import Any, Optional

import openai
from openai import OpenAI

import config
from erp_core import build_analysis_context, render_context_prompt
from models import AnalysisResult, ChatMessage

# Client initialized lazily to avoid import-time side effects
_client: Optional[OpenAI] = None

TRANSIENT_ERRORS = (openai.APIConnectionError, openai.APITimeoutError, openai.InternalServerError)
RETRY_DELAY_SECONDS = 1.0
HISTORY_MESSAGES = 6

ROLE_INSTRUCTION = (
    "You are a Senior ERP Data Analysis Consultant. Your goal is to provide actionable business intelligence "
    "from ERP exports (orders, purchasing, production, delivery)."
)

RESPONSE_SCHEMA_RULES = """Respond ONLY with a JSON object:
{"summary": "executive summary; if answering a user question, address it here",
 "keyInsights": ["3-5 specific, actionable insights derived from the data trends"],
 "charts": [{"id": "short-id", "title": "Chart title",
             "type": "bar|line|area|pie|scatter|radar",
             "xAxisKey": "exact column name for the X-axis (category)",
             "dataKey": "exact column name for the Y-axis (numerical value)",
             "description": "why this chart is relevant"}]}
Use exact column names from Headers. Return valid JSON only, no markdown."""


def get_openai_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=config.openai_api_key(), timeout=config.OPENAI_TIMEOUT_SECONDS)
    return _client


def build_task_prompt(user_prompt: Optional[str], history: Optional[list[ChatMessage]]) -> str:
    if user_prompt or history:
        task = f"""
**USER REQUEST:** "{user_prompt or "Based on previous context"}"

**Your Task:**
1.  **Direct Answer**: Use the provided 'Rows' to answer specific questions about specific orders/items.
2.  **Summary**: Update the summary to focus on the user's topic.
3.  **Charts**: Generate charts relevant to the user's request.
"""
        if history:
            recent = "\n".join(f"{m.role.upper()}: {m.content}" for m in history[-HISTORY_MESSAGES:])
            task += f"\n**Conversation History**:\n{recent}\n"
        return task

    return """
**Your Task:**
Perform a comprehensive analysis of the provided ERP dataset.

1.  **Executive Summary**: Write a professional summary. Use DATASET STATISTICS for high-level metrics.
2.  **Key Insights**: Provide 3-5 specific, actionable bullet points.
3.  **Strategic Charts**: Suggest up to 4 charts.
"""


def _request_completion(messages: list[dict[str, str]]) -> str:
    client = get_openai_client()

    def perform_request():
        return client.chat.completions.create(
            model=config.OPENAI_MODEL,
            messages=messages,
            temperature=config.OPENAI_TEMPERATURE,
            response_format={"type": "json_object"},
        )

    try:
        response = perform_request()
    except TRANSIENT_ERRORS as e:
        print(f"Insight request failed ({e.__class__.__name__}), retrying once")
        time.sleep(RETRY_DELAY_SECONDS)
        response = perform_request()
    content = response.choices[0].message.content
    if not content:
        raise RuntimeError("No response generated from AI.")
    return content


def drop_unknown_charts(result: AnalysisResult, headers: list[str]) -> tuple[AnalysisResult, list[str]]:
    """Remove proposed charts that reference columns the dataset does not have."""
    known = set(headers)
    kept = []
    warnings = []
    for chart in result.charts:
        missing = [c for c in (chart.x_axis_key, chart.data_key) if c not in known]
        if missing:
            warnings.append(f"Dropped chart '{chart.title}': unknown column(s) {missing}")
            continue
        kept.append(chart)
    for w in warnings:
        print(w)
    return result.model_copy(update={"charts": kept}), warnings


def generate_insights(
    rows: list[dict[str, Any]],
    user_prompt: Optional[str] = None,
    history: Optional[list[ChatMessage]] = None,
    statistics: Optional[dict] = None,
) -> tuple[AnalysisResult, dict]:
    """
    Ask the model for a summary, insights and charts.
    Returns (result, context) so callers can report how many rows were sent.
    Raises openai errors, json.JSONDecodeError and pydantic.ValidationError to the caller.
    """
    context = build_analysis_context(
        rows,
        user_prompt=user_prompt,
        sample_limit=config.SAMPLE_ROW_LIMIT,
        row_cap=config.CONTEXT_ROW_CAP,
        relevant_limit=config.RELEVANT_ROW_LIMIT,
        statistics=statistics,
    )
    messages = [
        {"role": "system", "content": f"{ROLE_INSTRUCTION}\n\n{RESPONSE_SCHEMA_RULES}"},
        {"role": "user", "content": render_context_prompt(context) + build_task_prompt(user_prompt, history)},
    ]

    content = _request_completion(messages)
    parsed = json.loads(content)
    result = AnalysisResult.model_validate(parsed)
    return result, context
