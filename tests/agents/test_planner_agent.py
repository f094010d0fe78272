from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from agents import planner_agent
from agents.planner_agent import (
    APOLOGY_MESSAGE,
    WELCOME_MESSAGE,
    handle_message,
    is_agenda_request,
    respond,
    start_session,
    transcript_for,
)
from memory.planner_session import PlannerSession
from schema.planner_models import ChatRole, PlannerState


class MemoryStore:
    def __init__(self, initial=None):
        self.initial = initial or PlannerState()
        self.saved = []

    async def load(self):
        return self.initial

    async def save(self, state):
        self.saved.append(state)
        return True


class TestRouting:
    @pytest.mark.parametrize(
        "text",
        ["plan", "Help me PLAN", "my agenda", "list my tasks", "x" * 51],
    )
    def test_agenda_requests(self, text):
        assert is_agenda_request(text) is True

    @pytest.mark.parametrize("text", ["hello ther", "x" * 50, "how are you?"])
    def test_chat_requests(self, text):
        assert is_agenda_request(text) is False

    @pytest.mark.asyncio
    async def test_keyword_routes_to_extraction_regardless_of_length(self):
        with patch(
            "agents.planner_agent.extract_agenda",
            AsyncMock(return_value=[{"title": "A"}]),
        ) as extract, patch("agents.planner_agent.get_chat_response", AsyncMock()) as chat:
            reply = await respond("plan", [])

        extract.assert_awaited_once_with("plan")
        chat.assert_not_awaited()
        assert reply.agenda is True

    @pytest.mark.asyncio
    async def test_short_message_routes_to_chat(self):
        with patch("agents.planner_agent.extract_agenda", AsyncMock()) as extract, patch(
            "agents.planner_agent.get_chat_response", AsyncMock(return_value="Keep going!")
        ) as chat:
            reply = await respond("hello ther", [])

        extract.assert_not_awaited()
        chat.assert_awaited_once()
        assert reply.content == "Keep going!"
        assert reply.new_tasks == []


class TestRespond:
    @pytest.mark.asyncio
    async def test_extracted_tasks_are_counted_in_reply(self):
        items = [{"title": "A"}, {"title": "B"}, {"title": "C"}]
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=items)):
            reply = await respond("my agenda for today", [])

        assert reply.new_tasks == items
        assert "generated 3 new tasks" in reply.content

    @pytest.mark.asyncio
    async def test_empty_extraction_apologizes_without_chat_fallback(self):
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=[])), patch(
            "agents.planner_agent.get_chat_response", AsyncMock(return_value="chatty")
        ) as chat:
            reply = await respond("plan my week please", [])

        assert reply.content == APOLOGY_MESSAGE
        assert reply.new_tasks == []
        chat.assert_not_awaited()


    @pytest.mark.asyncio
    async def test_count_excludes_items_without_title(self):
        items = [{"title": "Gym"}, {"description": "no title"}, {"title": ""}]
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=items)):
            reply = await respond("plan my day", [])

        assert reply.new_tasks == [{"title": "Gym"}]
        assert "generated 1 new tasks" in reply.content

    @pytest.mark.asyncio
    async def test_only_titleless_items_apologize(self):
        items = [{"description": "no title"}, {"title": "  "}]
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=items)):
            reply = await respond("plan my day", [])

        assert reply.content == APOLOGY_MESSAGE
        assert reply.new_tasks == []


class TestHandleMessage:
    @pytest_asyncio.fixture
    async def session(self):
        store = MemoryStore()
        session = PlannerSession(loader=store.load, saver=store.save)
        await session.hydrate()
        session.store = store
        return session

    @pytest.mark.asyncio
    async def test_agenda_adds_tasks_to_selected_day(self, session):
        items = [{"title": "Gym", "category": "Health"}, {"title": "Taxes", "priority": "high"}]
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=items)):
            await handle_message(session, "plan: gym and taxes", "2024-06-03")
        await session.flush()

        assert [t.title for t in session.state.tasks] == ["Gym", "Taxes"]
        assert {t.date for t in session.state.tasks} == {"2024-06-03"}

        transcript = session.state.chat_history["2024-06-03"]
        assert [m.role for m in transcript] == [ChatRole.ASSISTANT, ChatRole.USER, ChatRole.ASSISTANT]
        assert transcript[0].content == WELCOME_MESSAGE
        assert transcript[1].content == "plan: gym and taxes"
        assert "generated 2 new tasks" in transcript[2].content
        assert session.store.saved[-1] == session.state

    @pytest.mark.asyncio
    async def test_welcome_is_seeded_only_once(self, session):
        with patch("agents.planner_agent.get_chat_response", AsyncMock(return_value="ok")):
            await handle_message(session, "hi", "2024-06-03")
            await handle_message(session, "hey", "2024-06-03")

        contents = [m.content for m in session.state.chat_history["2024-06-03"]]
        assert contents == [WELCOME_MESSAGE, "hi", "ok", "hey", "ok"]

    @pytest.mark.asyncio
    async def test_failed_extraction_leaves_tasks_untouched(self, session):
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=[])):
            reply = await handle_message(session, "my agenda is a mystery", "2024-06-03")

        assert reply.content == APOLOGY_MESSAGE
        assert session.state.tasks == []
        assert session.state.chat_history["2024-06-03"][-1].content == APOLOGY_MESSAGE

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_apology(self, session):
        with patch("agents.planner_agent.respond", AsyncMock(side_effect=RuntimeError("boom"))):
            reply = await handle_message(session, "hi", "2024-06-03")

        assert reply.content == APOLOGY_MESSAGE
        assert session.state.chat_history["2024-06-03"][-1].content == APOLOGY_MESSAGE


def test_transcript_defaults_to_welcome():
    messages = transcript_for(PlannerState(), "2024-06-03")
    assert len(messages) == 1
    assert messages[0].content == WELCOME_MESSAGE


class TestStartSession:
    @pytest.mark.asyncio
    async def test_fetches_mission_when_missing(self):
        store = MemoryStore()
        session = PlannerSession(loader=store.load, saver=store.save)
        with patch.object(
            planner_agent, "get_daily_inspiration", AsyncMock(return_value="Be bold.")
        ):
            state = await start_session(session)
        await session.flush()

        assert state.daily_mission == "Be bold."
        assert store.saved[-1].daily_mission == "Be bold."

    @pytest.mark.asyncio
    async def test_keeps_stored_mission(self):
        store = MemoryStore(PlannerState(daily_mission="Stored"))
        session = PlannerSession(loader=store.load, saver=store.save)
        with patch.object(planner_agent, "get_daily_inspiration", AsyncMock()) as inspiration:
            state = await start_session(session)
            await start_session(session)

        assert state.daily_mission == "Stored"
        inspiration.assert_not_awaited()


class TestMalformedExtraction:
    @pytest_asyncio.fixture
    async def session(self):
        store = MemoryStore()
        session = PlannerSession(loader=store.load, saver=store.save)
        await session.hydrate()
        return session

    @pytest.mark.asyncio
    async def test_mistyped_item_fields_still_become_tasks(self, session):
        items = [{"title": "Gym", "category": 5}]
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=items)):
            reply = await handle_message(session, "plan gym", "2024-06-03")
        await session.flush()

        assert [t.title for t in session.state.tasks] == ["Gym"]
        assert session.state.tasks[0].category == "General"
        assert "generated 1 new tasks" in reply.content

    @pytest.mark.asyncio
    async def test_reported_count_matches_tasks_added(self, session):
        items = [{"title": "Gym"}, {"description": "no title"}, {"title": ""}]
        with patch("agents.planner_agent.extract_agenda", AsyncMock(return_value=items)):
            reply = await handle_message(session, "plan gym", "2024-06-03")
        await session.flush()

        assert len(session.state.tasks) == 1
        assert "generated 1 new tasks" in reply.content

    @pytest.mark.asyncio
    async def test_failure_while_adding_tasks_becomes_apology(self, session):
        with patch(
            "agents.planner_agent.extract_agenda", AsyncMock(return_value=[{"title": "Gym"}])
        ), patch("agents.planner_agent.add_tasks", side_effect=RuntimeError("bad item")):
            reply = await handle_message(session, "plan gym", "2024-06-03")
        await session.flush()

        assert reply.content == APOLOGY_MESSAGE
        assert session.state.tasks == []
        transcript = session.state.chat_history["2024-06-03"]
        assert [m.role for m in transcript][-2:] == [ChatRole.USER, ChatRole.ASSISTANT]
        assert transcript[-1].content == APOLOGY_MESSAGE
