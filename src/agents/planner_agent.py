"""
Chat orchestration for the planner assistant.

Incoming messages are routed either to agenda extraction or to a short
conversational reply. Extraction results become tasks on the selected day,
and both sides of the exchange are appended to that day's transcript.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from memory.planner_session import PlannerSession
from memory.task_store import add_tasks, append_chat_message, now_iso, set_mission, task_items
from schema.planner_models import ChatMessage, ChatRole, PlannerState, Task
from tools.agenda_tools import extract_agenda, get_chat_response, get_daily_inspiration

logger = logging.getLogger(__name__)

AGENDA_KEYWORDS = ("agenda", "tasks", "plan")
AGENDA_MIN_LENGTH = 50

WELCOME_MESSAGE = (
    "Hi! I'm Lumina. Drop your rough agenda here, and I'll turn it into an "
    "organized checklist for you."
)
APOLOGY_MESSAGE = (
    "I'm sorry, I had trouble processing that. Could you try rephrasing your agenda?"
)


@dataclass
class ChatReply:
    """Assistant text plus the task items to add, if any."""

    content: str
    new_tasks: List[Dict[str, Any]] = field(default_factory=list)
    agenda: bool = False


def is_agenda_request(text: str) -> bool:
    """True when the message mentions an agenda keyword or is longer than 50 characters."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in AGENDA_KEYWORDS) or len(text) > AGENDA_MIN_LENGTH


def tasks_generated_message(count: int) -> str:
    return (
        f"I've analyzed your notes and generated {count} new tasks for you! "
        "Check them out in your task board."
    )


async def respond(user_text: str, current_tasks: List[Task]) -> ChatReply:
    """
    Produce the assistant reply for one user message.

    Agenda-like messages go to extraction. Items without a usable title are
    dropped before counting. An empty result counts as a failure and returns
    the apology; it does not fall back to chat.

    Args:
        user_text: The user's message
        current_tasks: All tasks, used as context for conversational replies

    Returns:
        ChatReply: Reply text and the extracted task items
    """
    if is_agenda_request(user_text):
        items = task_items(await extract_agenda(user_text))
        if not items:
            logger.info("No tasks extracted from agenda message")
            return ChatReply(content=APOLOGY_MESSAGE, agenda=True)
        return ChatReply(
            content=tasks_generated_message(len(items)), new_tasks=items, agenda=True
        )

    return ChatReply(content=await get_chat_response(user_text, current_tasks))


def welcome_message(timestamp: Optional[str] = None) -> ChatMessage:
    return ChatMessage(
        role=ChatRole.ASSISTANT, content=WELCOME_MESSAGE, timestamp=timestamp or now_iso()
    )


def transcript_for(state: PlannerState, target_date: str) -> List[ChatMessage]:
    """A day's transcript, or just the welcome message when there is none."""
    messages = state.chat_history.get(target_date) or []
    return messages if messages else [welcome_message()]


async def handle_message(session: PlannerSession, text: str, target_date: str) -> ChatReply:
    """
    Run one chat exchange against the live session.

    The user message is recorded first (seeding an empty transcript with the
    welcome message the user was looking at), then the reply is computed,
    extracted tasks are added to ``target_date``, and the reply is recorded.
    """
    timestamp = now_iso()
    if not session.state.chat_history.get(target_date):
        session.apply(append_chat_message, target_date, welcome_message(timestamp))
    session.apply(
        append_chat_message,
        target_date,
        ChatMessage(role=ChatRole.USER, content=text, timestamp=timestamp),
    )

    try:
        reply = await respond(text, session.state.tasks)
        if reply.new_tasks:
            session.apply(add_tasks, reply.new_tasks, target_date)
    except Exception as e:
        logger.error(f"Chat exchange failed: {e}")
        reply = ChatReply(content=APOLOGY_MESSAGE)

    session.apply(
        append_chat_message,
        target_date,
        ChatMessage(role=ChatRole.ASSISTANT, content=reply.content, timestamp=now_iso()),
    )
    return reply


async def start_session(session: PlannerSession) -> PlannerState:
    """Hydrate the session and fill in a daily mission when none is stored."""
    if session.hydrated:
        return session.state
    state = await session.hydrate()
    if not state.daily_mission:
        mission = await get_daily_inspiration()
        state = session.apply(set_mission, mission)
    return state
