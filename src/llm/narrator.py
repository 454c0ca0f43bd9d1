"""
WealthDesk — Advisor Assistant

Wraps the Anthropic Messages API for two jobs:
    - answer()    : free-form reply to an advisor's question about one client
    - summarise() : schema-constrained portfolio insights, validated on arrival

The model is purely a translator: every number in the prompt was computed by
the finance layer. Failures of the SDK surface as UpstreamFailure; replies
that do not match the requested shape surface as ModelResponseError.
"""

import json
import logging
from typing import Any, List, Optional, Sequence

import anthropic
from pydantic import BaseModel, Field, ValidationError

from config.settings import Settings
from src.context.builder import ClientContext
from src.errors import ModelResponseError, UpstreamFailure
from src.finance.formatting import format_currency, format_percentage
from src.models.domain import ChatMessage

logger = logging.getLogger(__name__)

ASSISTANT_SYSTEM_PROMPT = """You are a financial advisor's AI assistant. You help the advisor
understand one client's financial position using the structured context provided.

Rules:
- Every number in the context was computed by the portfolio system. Quote it, do not recompute it.
- Use plain English. No jargon without immediate explanation.
- Be specific with numbers but round appropriately (e.g., "about 15%" not "14.73%").
- Frame risk in terms of the client's stated risk tolerance and goals.
- Never give direct investment advice. Describe what the analysis shows.
- If the context does not contain the answer, say so."""

INSIGHTS_TOOL_NAME = "record_portfolio_insights"


class PortfolioInsights(BaseModel):
    """Shape the assistant must fill in for a portfolio summary."""
    summary: str = Field(..., min_length=1, description="Two or three sentence overview of the client's position")
    key_observations: List[str] = Field(default_factory=list, description="Notable facts drawn from the context")
    recommendations: List[str] = Field(default_factory=list, description="Points the advisor may want to discuss")
    risk_assessment: str = Field(..., min_length=1, description="How the allocation lines up with the stated risk tolerance")


def build_context_prompt(context: ClientContext, currency: str = "CAD") -> str:
    """Readable header plus the full JSON context."""
    p = context.portfolio
    cf = context.cash_flow
    profile = context.profile
    return f"""CLIENT: {profile['name']} (risk tolerance: {profile['risk_tolerance']}, age: {profile.get('age') or 'unknown'})

PORTFOLIO:
- Current value: {format_currency(p.total_current_value, currency)}
- Projected value: {format_currency(p.total_future_value, currency)}
- Projected growth: {format_currency(p.total_projected_growth, currency)}
- Overall growth rate: {format_percentage(p.overall_growth_rate)} per year over {p.normalisation_years:.1f} years

CASH FLOW (monthly):
- Income: {format_currency(cf.monthly_income, currency)}
- Expenses: {format_currency(cf.monthly_expenses, currency)}
- Net: {format_currency(cf.net_monthly_cash_flow, currency)}

FULL CONTEXT (JSON):
{json.dumps(context.to_prompt_dict(), indent=2, default=str)}"""


def _extract_text(response: Any) -> str:
    parts = []
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            parts.append(block.text)
    return "".join(parts).strip()


def _extract_tool_input(response: Any, tool_name: str) -> Optional[dict]:
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "tool_use" and getattr(block, "name", None) == tool_name:
            return block.input
    return None


class AdvisorAssistant:
    """
    Explicitly constructed around a Settings object. Pass ``client`` to reuse
    an SDK client (or a stand-in with the same ``messages.create`` shape).
    """

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.settings = settings
        self.model = settings.anthropic_model
        if client is None and settings.assistant_enabled:
            client = anthropic.Anthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.assistant_timeout_seconds,
                max_retries=0,
            )
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None

    def _create(self, **kwargs) -> Any:
        if self._client is None:
            raise UpstreamFailure()
        try:
            return self._client.messages.create(
                model=self.model,
                max_tokens=self.settings.assistant_max_tokens,
                **kwargs,
            )
        except anthropic.APIError as e:
            logger.warning("Assistant API call failed: %s", e)
            raise UpstreamFailure() from e

    def answer(
        self,
        question: str,
        context: ClientContext,
        history: Sequence[ChatMessage] = (),
    ) -> str:
        """Answer a follow-up question; prior turns are replayed in order."""
        messages = [{"role": m.role, "content": m.content} for m in history]
        messages.append({
            "role": "user",
            "content": f"Context:\n{build_context_prompt(context, self.settings.currency)}\n\nQuestion: {question}",
        })
        response = self._create(
            system=ASSISTANT_SYSTEM_PROMPT + "\n\nAnswer the question using the context provided. Be concise.",
            messages=messages,
        )
        text = _extract_text(response)
        if not text:
            raise ModelResponseError("The assistant returned an empty response.")
        return text

    def summarise(self, context: ClientContext) -> PortfolioInsights:
        """
        Structured insights for one client. Without an API key configured,
        a template summary is returned instead.
        """
        if not self.available:
            return template_insights(context, self.settings.currency)

        response = self._create(
            system=ASSISTANT_SYSTEM_PROMPT,
            messages=[{
                "role": "user",
                "content": "Summarise this client's financial position for their advisor.\n\n"
                           + build_context_prompt(context, self.settings.currency),
            }],
            tools=[{
                "name": INSIGHTS_TOOL_NAME,
                "description": "Record the structured portfolio insights for the advisor.",
                "input_schema": PortfolioInsights.model_json_schema(),
            }],
            tool_choice={"type": "tool", "name": INSIGHTS_TOOL_NAME},
        )
        payload = _extract_tool_input(response, INSIGHTS_TOOL_NAME)
        if payload is None:
            raise ModelResponseError("The assistant did not return structured insights.")
        try:
            return PortfolioInsights.model_validate(payload)
        except ValidationError as e:
            logger.warning("Assistant insights failed validation: %s", e)
            raise ModelResponseError(errors=[err["msg"] for err in e.errors()]) from e


def template_insights(context: ClientContext, currency: str = "CAD") -> PortfolioInsights:
    """Template-based fallback when the assistant is not configured."""
    name = context.profile["name"].split()[0]
    p = context.portfolio
    cf = context.cash_flow
    tolerance = context.profile["risk_tolerance"]

    summary = (
        f"{name}'s assets are worth {format_currency(p.total_current_value, currency)} today and are "
        f"projected to reach {format_currency(p.total_future_value, currency)}, "
        f"about {format_percentage(p.overall_growth_rate)} a year."
    )

    observations = []
    if context.allocation:
        top = context.allocation[0]
        observations.append(
            f"The largest holding category is {top.category} at {top.percentage:.0f}% of the portfolio."
        )
    observations.append(
        f"Net monthly cash flow is {format_currency(cf.net_monthly_cash_flow, currency)}."
    )

    recommendations = []
    if cf.net_monthly_cash_flow < 0:
        recommendations.append("Review expenses: monthly spending exceeds active income.")
    for goal in context.goals:
        if goal.priority == "high":
            recommendations.append(f"Check progress toward '{goal.name}'.")

    # 1 = all low-risk holdings, 3 = all high-risk holdings
    expected = {"conservative": 1.5, "moderate": 2.0, "aggressive": 2.5}.get(tolerance, 2.0)
    if context.risk_score == 0:
        risk = "No valued assets on file, so the allocation cannot be assessed."
    elif abs(context.risk_score - expected) <= 0.5:
        risk = f"The allocation (risk score {context.risk_score:.2f}) is broadly in line with a {tolerance} profile."
    elif context.risk_score < expected:
        risk = f"The allocation (risk score {context.risk_score:.2f}) is more cautious than a {tolerance} profile suggests."
    else:
        risk = f"The allocation (risk score {context.risk_score:.2f}) carries more risk than a {tolerance} profile suggests."

    return PortfolioInsights(
        summary=summary,
        key_observations=observations,
        recommendations=recommendations,
        risk_assessment=risk,
    )
