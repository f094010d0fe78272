"""
Snapshot persistence for the planner state.

The whole state is read and written as one JSON document. The document lives
behind the desktop shell when one is configured, or in a local JSON file
otherwise. Reads upgrade the legacy array-of-day-entries layout in memory;
write failures are logged and never raised.
"""

import json
import logging
import os
import uuid
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from common.data import get_planner_data_file
from common.shell_bridge import ShellBridge, ShellBridgeError, get_shell_bridge
from core.settings import StorageBackend, settings
from memory.task_store import now_iso
from schema.planner_models import ChatMessage, PlannerState, Task

logger = logging.getLogger(__name__)

JSON_PATH = get_planner_data_file()
UNTITLED_TASK = "Untitled task"


def _load_json() -> Any:
    if not os.path.exists(JSON_PATH):
        return None
    with open(JSON_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def _save_json(data: Any) -> None:
    directory = os.path.dirname(JSON_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(JSON_PATH, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)


def _clear_json() -> None:
    if os.path.exists(JSON_PATH):
        os.remove(JSON_PATH)


def _get_bridge() -> Optional[ShellBridge]:
    if settings.STORAGE_BACKEND == StorageBackend.JSON:
        return None
    bridge = get_shell_bridge()
    if bridge is None and settings.STORAGE_BACKEND == StorageBackend.SHELL:
        logger.warning("STORAGE_BACKEND is 'shell' but SHELL_URL is not set; using local file")
    return bridge


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _created_stamp(fallback_date: Optional[str]) -> str:
    """Midnight UTC of the owning day when it is a real date, otherwise now."""
    try:
        day = date.fromisoformat(fallback_date or "")
    except ValueError:
        return now_iso()
    return datetime.combine(day, time.min, tzinfo=timezone.utc).isoformat()


def _repair_task(raw: dict, fallback_date: Optional[str]) -> dict:
    """Fill in missing or mistyped task fields so older data still loads."""
    task = dict(raw)
    task["id"] = str(task["id"]) if task.get("id") not in (None, "") else str(uuid.uuid4())
    for key in ("title", "description", "category"):
        if not isinstance(task.get(key), str):
            task.pop(key, None)
    if not task.get("title", "").strip():
        task["title"] = UNTITLED_TASK
    if not isinstance(task.get("date"), str) or not task["date"]:
        task["date"] = fallback_date or date.today().isoformat()
    if not isinstance(task.get("createdAt", task.get("created_at")), str):
        task.pop("created_at", None)
        task["createdAt"] = _created_stamp(task["date"])
    if not isinstance(task.get("completed"), bool):
        task["completed"] = False
    rating = task.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        task["rating"] = None
    for key in ("completedAt", "completed_at"):
        if key in task and not isinstance(task[key], str):
            task[key] = None
    return task


def _coerce_tasks(raw_tasks: Any, fallback_date: Optional[str] = None) -> List[Task]:
    """Validate stored tasks one by one, repairing fields that are missing or mistyped."""
    if not isinstance(raw_tasks, list):
        return []
    tasks = []
    for raw in raw_tasks:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping stored task of type {type(raw).__name__}")
            continue
        try:
            tasks.append(Task.model_validate(_repair_task(raw, fallback_date)))
        except ValidationError as e:
            logger.warning(f"Skipping unreadable task {raw.get('id')!r}: {e.error_count()} error(s)")
    return tasks


def _coerce_history(raw_history: Any) -> dict:
    if not isinstance(raw_history, dict):
        return {}
    history = {}
    for day, messages in raw_history.items():
        if not isinstance(messages, list):
            continue
        day_messages = []
        for raw in messages:
            try:
                day_messages.append(ChatMessage.model_validate(raw))
            except ValidationError:
                logger.warning(f"Skipping unreadable chat message for {day}")
        history[str(day)] = day_messages
    return history


def migrate_legacy_entries(entries: Iterable[Any]) -> PlannerState:
    """
    Merge the legacy per-day layout into one state.

    Entries are stored newest-first. Tasks are concatenated in entry order and
    the first non-empty ``dailyMission`` wins.

    Args:
        entries: Items shaped like ``{"date": ..., "tasks": [...], "dailyMission": ...}``

    Returns:
        PlannerState: The unified state
    """
    tasks: List[Task] = []
    mission = ""
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if not mission and _str_or_none(entry.get("dailyMission")):
            mission = entry["dailyMission"]
        entry_date = _str_or_none(entry.get("date"))
        tasks.extend(_coerce_tasks(entry.get("tasks"), fallback_date=entry_date))
    logger.info(f"Migrated legacy day entries into {len(tasks)} tasks")
    return PlannerState(tasks=tasks, daily_mission=mission)


def normalize_snapshot(raw: Any) -> PlannerState:
    """Turn any stored document into the current PlannerState shape."""
    if raw is None:
        return PlannerState()
    if isinstance(raw, list):
        return migrate_legacy_entries(raw)
    if isinstance(raw, dict):
        return PlannerState(
            tasks=_coerce_tasks(raw.get("tasks")),
            user_name=_str_or_none(raw.get("userName", raw.get("user_name"))),
            daily_mission=_str_or_none(raw.get("dailyMission", raw.get("daily_mission"))),
            chat_history=_coerce_history(raw.get("chatHistory", raw.get("chat_history"))),
        )
    logger.warning(f"Ignoring stored planner data of type {type(raw).__name__}")
    return PlannerState()


async def load_state() -> PlannerState:
    """
    Load the planner state from the active sink.

    The shell is tried first when configured; an unreachable shell or an empty
    shell document falls back to the local file. Any failure yields the
    default empty state.
    """
    raw = None
    bridge = _get_bridge()
    if bridge is not None:
        try:
            raw = await bridge.load()
        except ShellBridgeError as e:
            logger.error(f"Shell load failed, falling back to local file: {e}")
        if raw is None:
            logger.info("Shell returned no data, using local file")

    if raw is None:
        try:
            raw = _load_json()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read planner data from {JSON_PATH}: {e}")
            return PlannerState()

    try:
        state = normalize_snapshot(raw)
    except ValidationError as e:
        logger.error(f"Stored planner data could not be read, starting empty: {e}")
        return PlannerState()
    logger.info(f"Loaded {len(state.tasks)} tasks")
    return state


async def save_state(state: PlannerState) -> bool:
    """
    Write the full state as one snapshot, replacing the previous one.

    Returns:
        bool: True when some sink accepted the snapshot
    """
    snapshot = state.to_snapshot()
    bridge = _get_bridge()
    if bridge is not None:
        try:
            if await bridge.save(snapshot):
                return True
            logger.error("Shell rejected the snapshot, falling back to local file")
        except ShellBridgeError as e:
            logger.error(f"Shell save failed, falling back to local file: {e}")

    try:
        _save_json(snapshot)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to write planner data to {JSON_PATH}: {e}")
        return False


async def clear_state() -> bool:
    """Delete the stored snapshot from every sink in use."""
    cleared = True
    bridge = _get_bridge()
    if bridge is not None:
        try:
            cleared = await bridge.clear()
        except ShellBridgeError as e:
            logger.error(f"Shell clear failed: {e}")
            cleared = False
    try:
        _clear_json()
    except OSError as e:
        logger.error(f"Failed to remove {JSON_PATH}: {e}")
        return False
    return cleared
