from datetime import date
from unittest.mock import AsyncMock, Mock, patch

import pytest

from core.settings import settings
from tools import agenda_tools
from tools.agenda_tools import (
    CANNED_CHAT_REPLIES,
    DEFAULT_INSPIRATION,
    extract_agenda,
    get_chat_response,
    get_daily_inspiration,
    parse_task_array,
)


class TestParseTaskArray:
    def test_bare_array(self):
        text = '[{"title": "Gym", "priority": "low"}]'
        assert parse_task_array(text) == [{"title": "Gym", "priority": "low"}]

    def test_array_wrapped_in_prose_and_fences(self):
        text = (
            "Sure! Here are your tasks:\n```json\n"
            '[{"title": "Email Bob"}, {"title": "Pay rent", "category": "Finance"}]\n'
            "```\nGood luck!"
        )
        assert [t["title"] for t in parse_task_array(text)] == ["Email Bob", "Pay rent"]

    def test_non_object_items_are_dropped(self):
        assert parse_task_array('[{"title": "a"}, "b", 3, null]') == [{"title": "a"}]

    @pytest.mark.parametrize("text", ["", "no json here", "[not, valid", '{"title": "x"}', "[oops]"])
    def test_unparseable_returns_empty(self, text):
        assert parse_task_array(text) == []


class TestExtractAgenda:
    @pytest.mark.asyncio
    async def test_returns_parsed_tasks(self, fake_model):
        fake_model('[{"title": "Write report", "category": "Work", "priority": "high"}]')
        tasks = await extract_agenda("Tomorrow I need to write the report")
        assert tasks == [{"title": "Write report", "category": "Work", "priority": "high"}]

    @pytest.mark.asyncio
    async def test_prompt_contains_agenda(self):
        model = Mock()
        model.ainvoke = AsyncMock(return_value=Mock(content="[]"))
        with patch("tools.agenda_tools.get_model", return_value=model):
            await extract_agenda("buy milk")
        prompt = model.ainvoke.call_args.args[0]
        assert 'Agenda: "buy milk"' in prompt
        assert "JSON array" in prompt

    @pytest.mark.asyncio
    async def test_garbage_response_returns_empty(self, fake_model):
        fake_model("I could not find any tasks, sorry.")
        assert await extract_agenda("plan my day") == []

    @pytest.mark.asyncio
    async def test_transport_error_returns_empty(self):
        model = Mock()
        model.ainvoke = AsyncMock(side_effect=ConnectionError("offline"))
        with patch("tools.agenda_tools.get_model", return_value=model):
            assert await extract_agenda("plan my day") == []

    @pytest.mark.asyncio
    async def test_blank_input_skips_the_model(self):
        with patch("tools.agenda_tools.get_model") as get_model:
            assert await extract_agenda("   ") == []
        get_model.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_content_is_joined(self):
        model = Mock()
        model.ainvoke = AsyncMock(
            return_value=Mock(content=[{"type": "text", "text": '[{"title": "A"}]'}])
        )
        with patch("tools.agenda_tools.get_model", return_value=model):
            assert await extract_agenda("agenda") == [{"title": "A"}]


class TestDailyInspiration:
    @pytest.fixture(autouse=True)
    def _clear_cache(self, monkeypatch):
        monkeypatch.setattr(agenda_tools, "_inspiration_cache", {})

    @pytest.mark.asyncio
    async def test_quotes_are_stripped_and_cached_per_day(self):
        model = Mock()
        model.ainvoke = AsyncMock(return_value=Mock(content='"Finish what you start."'))
        with patch("tools.agenda_tools.get_model", return_value=model):
            first = await get_daily_inspiration(date(2024, 6, 1))
            second = await get_daily_inspiration(date(2024, 6, 1))
            await get_daily_inspiration(date(2024, 6, 2))

        assert first == "Finish what you start."
        assert second == first
        assert model.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_returns_default(self):
        with patch("tools.agenda_tools.get_model", side_effect=ValueError("no model")):
            assert await get_daily_inspiration(date(2024, 6, 1)) == DEFAULT_INSPIRATION


class TestChatResponse:
    @pytest.mark.asyncio
    async def test_canned_reply_without_model(self, monkeypatch):
        monkeypatch.setattr(settings, "CHAT_USE_MODEL", False)
        with patch("tools.agenda_tools.get_model") as get_model:
            reply = await get_chat_response("hi", [])
        assert reply in CANNED_CHAT_REPLIES
        get_model.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_reply_sees_tasks(self, monkeypatch, make_task):
        monkeypatch.setattr(settings, "CHAT_USE_MODEL", True)
        model = Mock()
        model.ainvoke = AsyncMock(return_value=Mock(content="Start with the report."))
        with patch("tools.agenda_tools.get_model", return_value=model):
            reply = await get_chat_response("what first?", [make_task("t1", title="Report")])

        assert reply == "Start with the report."
        assert "Report" in model.ainvoke.call_args.args[0]

    @pytest.mark.asyncio
    async def test_model_failure_falls_back_to_canned(self, monkeypatch):
        monkeypatch.setattr(settings, "CHAT_USE_MODEL", True)
        model = Mock()
        model.ainvoke = AsyncMock(side_effect=TimeoutError())
        with patch("tools.agenda_tools.get_model", return_value=model):
            assert await get_chat_response("hi", []) in CANNED_CHAT_REPLIES
