"""
AI-assisted event copy and analytics reports via the Anthropic Messages API.
"""
import json
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import ConfigurationError, InvalidRequestError, UpstreamServiceError

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DESCRIPTION_MAX_TOKENS = 1024
REPORT_MAX_TOKENS = 4096


def _rate(part, whole) -> str:
    """Percentage with one decimal, "0" when the base is empty."""
    part = part or 0
    whole = whole or 0
    if whole <= 0:
        return "0"
    return f"{(part / whole) * 100:.1f}"


def _event_type_label(event_type: Optional[str], price) -> str:
    if event_type == "free":
        return "Free Event"
    return f"Paid Event - GHS {price}" if price else "Paid Event"


def _detail_lines(details: dict) -> str:
    lines = []
    for key, label in (("category", "Category"), ("location", "Location"), ("date", "Date"), ("time", "Time")):
        if details.get(key):
            lines.append(f"{label}: {details[key]}")
    if details.get("type"):
        lines.append(f"Type: {_event_type_label(details['type'], details.get('price'))}")
    return "\n".join(lines)


def build_description_prompt(
    event_name: Optional[str],
    current_description: Optional[str],
    event_details: Optional[dict],
    action: str,
) -> str:
    details = _detail_lines(event_details or {})
    if action == "improve" and current_description:
        return f"""You are helping an event organizer improve their event description.

Event Name: {event_name or 'Not provided'}
{details}

Current Description:
{current_description}

Please rewrite and improve this event description to be more engaging, professional, and compelling. Keep the same key information but make it more appealing to potential attendees. The description should:
- Be clear and concise
- Highlight what makes this event special
- Include a call to action
- Be appropriate for the event type and category

Respond with ONLY the improved description text, no explanations or preamble."""

    notes = f"\nNotes/Ideas from organizer:\n{current_description}" if current_description else ""
    return f"""You are helping an event organizer create an event description.

Event Name: {event_name}
{details}{notes}

Please write an engaging, professional event description based on the information provided. The description should:
- Be 2-4 paragraphs long
- Be clear and compelling
- Highlight what attendees can expect
- Include a call to action
- Be appropriate for the event type and category

Respond with ONLY the description text, no explanations or preamble."""


def build_report_prompt(report_data: dict) -> str:
    event = report_data.get("event") or {}
    attendees = report_data.get("attendees") or {}
    engagement = report_data.get("engagement")
    surveys = report_data.get("surveys")
    revenue = report_data.get("revenue")

    sales_rate = _rate(event.get("soldTickets"), event.get("totalTickets"))
    cancellation_rate = _rate(attendees.get("cancelled"), attendees.get("total"))
    is_paid = event.get("type") == "paid"
    price = event.get("price")
    type_label = "Free Event" if event.get("type") == "free" else (
        f"Paid Event (GHS {price}/ticket)" if price else "Paid Event (Price varies)"
    )

    sections = [f"""You are an expert event analytics consultant. Generate a comprehensive, professional event report based on the following data.

EVENT DETAILS:
- Name: {event.get('name', '')}
- Description: {event.get('description', '')}
- Date: {event.get('date', '')} at {event.get('time', '')}
- Location: {event.get('location', '')}
- Category: {event.get('category', '')}
- Type: {type_label}
- Status: {event.get('status', '')}

TICKET PERFORMANCE:
- Total Capacity: {event.get('totalTickets', 0)} tickets
- Tickets Sold: {event.get('soldTickets', 0)}
- Available: {event.get('availableTickets', 0)}
- Sales Rate: {sales_rate}%

ATTENDEE METRICS:
- Total Registrations: {attendees.get('total', 0)}
- Confirmed: {attendees.get('confirmed', 0)}
- Cancelled: {attendees.get('cancelled', 0)}
- Waitlisted: {attendees.get('waitlisted', 0)}
- Cancellation Rate: {cancellation_rate}%
- Registration Timeline: {json.dumps(attendees.get('registrationsByDay', []))}"""]

    if revenue:
        sections.append(
            "REVENUE:\n"
            f"- Total Revenue: GHS {float(revenue.get('total', 0)):.2f}\n"
            f"- Average per Attendee: GHS {float(revenue.get('average', 0)):.2f}"
        )

    if engagement:
        quizzes = engagement.get("quizzes") or {}
        polls = engagement.get("polls") or {}
        lines = [
            "ENGAGEMENT METRICS:",
            f"- Quizzes Created: {quizzes.get('total', 0)}",
            f"- Quiz Responses: {quizzes.get('totalResponses', 0)}",
        ]
        if quizzes.get("averageScore"):
            lines.append(f"- Average Quiz Score: {quizzes['averageScore']}%")
        lines.append(f"- Polls Created: {polls.get('total', 0)}")
        lines.append(f"- Poll Responses: {polls.get('totalResponses', 0)}")
        sections.append("\n".join(lines))

    if surveys:
        lines = [
            "SURVEY & FEEDBACK:",
            f"- Surveys Created: {surveys.get('total', 0)}",
            f"- Survey Responses: {surveys.get('totalResponses', 0)}",
        ]
        if surveys.get("averageNPS") is not None:
            lines.append(f"- Average NPS Score: {surveys['averageNPS']}/10")
        feedback = surveys.get("topFeedback") or []
        if feedback:
            lines.append(f"- Sample Feedback: {'; '.join(feedback[:3])}")
        sections.append("\n".join(lines))

    outline = [
        "Please generate a detailed report with the following sections. Use markdown formatting:",
        "## Executive Summary\nA 2-3 sentence overview of event performance.",
        "## Key Performance Indicators\nList 4-5 most important metrics with brief analysis.",
        "## Attendance Analysis\nAnalyze registration patterns, cancellation rates, and attendee behavior.",
        "## Revenue Analysis\nAnalyze revenue performance and ticket sales trends." if is_paid
        else "## Registration Analysis\nAnalyze registration trends and capacity utilization.",
    ]
    if engagement:
        outline.append(
            "## Engagement Insights\nAnalyze quiz and poll participation rates and what they indicate about attendee engagement."
        )
    if surveys:
        outline.append("## Feedback Summary\nSummarize survey results and key takeaways from attendee feedback.")
    outline.append("## Recommendations\nProvide 3-5 actionable recommendations for future events based on the data.")
    outline.append("## Overall Assessment\nGive an overall grade (A-F) and final thoughts on event success.")
    outline.append(
        "Be specific with numbers and percentages. Highlight both strengths and areas for improvement. "
        "Keep the tone professional but accessible."
    )
    sections.append("\n\n".join(outline))
    return "\n\n".join(sections)


class AIWriter:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 60.0,
    ):
        self.api_key = ((api_key if api_key is not None else settings.ANTHROPIC_API_KEY) or "").strip()
        self.model = model or settings.ANTHROPIC_MODEL
        self._http = http_client
        self.timeout = timeout

    def complete(self, prompt: str, max_tokens: int) -> str:
        if not self.api_key:
            raise ConfigurationError("Anthropic API key not configured")

        client = self._http or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(
                ANTHROPIC_API_URL,
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                json={
                    "model": self.model,
                    "max_tokens": max_tokens,
                    "messages": [{"role": "user", "content": prompt}],
                },
            )
        except httpx.RequestError as e:
            logger.error(f"[AI] Anthropic request failed: {e}")
            raise UpstreamServiceError(f"Failed to reach Anthropic: {e}")
        finally:
            if self._http is None:
                client.close()

        if not response.is_success:
            logger.error(f"[AI] Anthropic API error ({response.status_code}): {response.text}")
            raise UpstreamServiceError(
                "AI generation failed",
                upstream_status=response.status_code,
                payload=response.text,
            )

        content = response.json().get("content") or []
        text = content[0].get("text", "") if content and isinstance(content[0], dict) else ""
        return text.strip()

    def generate_description(
        self,
        event_name: Optional[str] = None,
        current_description: Optional[str] = None,
        event_details: Optional[dict] = None,
        action: str = "generate",
    ) -> str:
        if not event_name and not current_description:
            raise InvalidRequestError("Either event name or current description is required")
        prompt = build_description_prompt(event_name, current_description, event_details, action)
        try:
            return self.complete(prompt, DESCRIPTION_MAX_TOKENS)
        except UpstreamServiceError as e:
            e.message = "Failed to generate description"
            raise

    def generate_report(self, report_data: Optional[dict]) -> str:
        if not report_data or not report_data.get("event"):
            raise InvalidRequestError("Event report data is required")
        prompt = build_report_prompt(report_data)
        try:
            return self.complete(prompt, REPORT_MAX_TOKENS)
        except UpstreamServiceError as e:
            e.message = "Failed to generate report"
            raise
