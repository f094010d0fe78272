"""
Model-backed helpers for the planner: agenda extraction, the daily mission
sentence, and short chat replies.

None of these raise to the caller. Transport or parsing problems are logged
and turned into an empty result or a safe default string.
"""

import json
import logging
import random
import re
from datetime import date
from typing import Any, Dict, List

from core import get_model
from core.settings import settings
from schema.planner_models import Task

logger = logging.getLogger(__name__)

DEFAULT_INSPIRATION = "Make today count."

CANNED_CHAT_REPLIES = [
    "You got this! Keep focused on what matters most.",
    "That sounds like a solid plan. How can I help you organize it?",
    "Great energy! Break that down into smaller tasks if you need to.",
    "I'm here to help. Want me to turn this into actionable tasks?",
    "Perfect mindset! Let's make it happen.",
    "Love the ambition. What's the first step?",
]

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

# day (YYYY-MM-DD) -> sentence
_inspiration_cache: Dict[str, str] = {}


def _response_text(response: Any) -> str:
    """Plain text of a chat model response, whatever shape its content has."""
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        content = "".join(parts)
    return str(content).strip()


def parse_task_array(text: str) -> List[Dict[str, Any]]:
    """
    Pull a JSON task array out of a model response.

    The model does not always return bare JSON, so the outermost ``[...]``
    substring is parsed. Entries that are not objects are dropped.

    Args:
        text: Raw model output

    Returns:
        List[Dict[str, Any]]: Task dictionaries, or an empty list when no array parses
    """
    if not text:
        return []
    match = _JSON_ARRAY_RE.search(text)
    if not match:
        return []
    try:
        parsed = json.loads(match.group(0))
    except ValueError as e:
        logger.warning(f"Agenda response was not valid JSON: {e}")
        return []
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, dict)]


def build_agenda_prompt(agenda: str) -> str:
    return (
        "Extract specific, actionable tasks from the agenda below. "
        "Return ONLY a JSON array. For each task include title, description, "
        "category (Work/Personal/Health/Finance/Learning) and priority "
        "(low/medium/high).\n\n"
        f'Agenda: "{agenda}"'
    )


async def extract_agenda(agenda: str) -> List[Dict[str, Any]]:
    """
    Turn a free-text agenda into task dictionaries with one model call.

    Args:
        agenda: Free text describing the user's intended activities

    Returns:
        List[Dict[str, Any]]: Items with ``title`` and optional ``description``,
        ``category`` and ``priority``; empty on any failure
    """
    if not agenda or not agenda.strip():
        return []
    try:
        model = get_model(settings.DEFAULT_MODEL)
        response = await model.ainvoke(build_agenda_prompt(agenda.strip()))
    except Exception as e:
        logger.error(f"Agenda extraction request failed: {e}")
        return []

    tasks = parse_task_array(_response_text(response))
    logger.info(f"Extracted {len(tasks)} tasks from agenda")
    return tasks


async def get_daily_inspiration(today: date | None = None) -> str:
    """
    One-sentence productivity mission, fetched at most once per day.

    Args:
        today: Day to fetch for. If None, uses today's date.

    Returns:
        str: The sentence without quotes, or the default mission on failure
    """
    day_key = (today or date.today()).isoformat()
    cached = _inspiration_cache.get(day_key)
    if cached:
        return cached

    try:
        model = get_model(settings.DEFAULT_MODEL)
        response = await model.ainvoke(
            "Generate a one-sentence daily productivity mission for a personal "
            "planner. Keep it under 15 words."
        )
        text = _response_text(response).replace('"', "").strip()
    except Exception as e:
        logger.error(f"Daily inspiration request failed: {e}")
        return DEFAULT_INSPIRATION

    if not text:
        return DEFAULT_INSPIRATION
    _inspiration_cache[day_key] = text
    return text


def _task_context(tasks: List[Task], limit: int = 20) -> str:
    lines = []
    for task in tasks[:limit]:
        status = "done" if task.completed else "open"
        lines.append(f"- [{status}] {task.title} ({task.category}, {task.priority.value}, {task.date})")
    return "\n".join(lines) if lines else "(no tasks yet)"


async def get_chat_response(message: str, current_tasks: List[Task]) -> str:
    """
    Short conversational reply for messages that are not agendas.

    Canned encouragement is used unless ``CHAT_USE_MODEL`` is enabled, in which
    case the model answers with the current tasks as context.
    """
    if not settings.CHAT_USE_MODEL:
        return random.choice(CANNED_CHAT_REPLIES)

    prompt = f"""You are Lumina, a friendly daily planning assistant. Reply in one or two short sentences.

The user's current tasks:
{_task_context(current_tasks)}

User: {message}"""
    try:
        model = get_model(settings.DEFAULT_MODEL)
        response = await model.ainvoke(prompt)
        text = _response_text(response)
    except Exception as e:
        logger.error(f"Chat reply request failed: {e}")
        text = ""
    return text or random.choice(CANNED_CHAT_REPLIES)
