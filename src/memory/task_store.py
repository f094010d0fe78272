"""
Pure state transitions for the planner.

Every function takes a PlannerState and returns a new one; the input is never
mutated. Untargeted tasks keep their position, identifier and owning date.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from schema.planner_models import (
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    ChatMessage,
    PlannerState,
    Priority,
    Task,
    TaskFilter,
)

logger = logging.getLogger(__name__)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _with_tasks(state: PlannerState, tasks: List[Task]) -> PlannerState:
    return state.model_copy(update={"tasks": tasks})


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _has_title(item: Any) -> bool:
    if not isinstance(item, Mapping):
        return False
    title = item.get("title")
    return isinstance(title, str) and bool(title.strip())


def _build_task(item: Mapping[str, Any], target_date: str, created_at: str) -> Optional[Task]:
    if not _has_title(item):
        return None
    try:
        return Task(
            id=str(uuid.uuid4()),
            title=item["title"].strip(),
            description=_text(item.get("description"), DEFAULT_DESCRIPTION),
            category=_text(item.get("category"), DEFAULT_CATEGORY),
            priority=item.get("priority") or Priority.MEDIUM,
            completed=False,
            rating=None,
            created_at=created_at,
            date=target_date,
        )
    except ValidationError as e:
        logger.warning(f"Skipping unusable task item {item.get('title')!r}: {e.error_count()} error(s)")
        return None


def task_items(items: Iterable[Any]) -> List[Mapping[str, Any]]:
    """The items ``add_tasks`` would turn into tasks (mappings with a usable title)."""
    return [item for item in items if _has_title(item)]


def add_tasks(
    state: PlannerState, items: Iterable[Mapping[str, Any]], target_date: str
) -> PlannerState:
    """
    Create tasks from extracted agenda items and prepend them to the list.

    Args:
        state: Current planner state
        items: Mappings with ``title`` and optional ``description``,
            ``category`` and ``priority``
        target_date: Owning day for the new tasks (the selected day, YYYY-MM-DD)

    Returns:
        PlannerState: New state with the created tasks first, in item order
    """
    created_at = now_iso()
    new_tasks = []
    for item in items:
        task = _build_task(item, target_date, created_at)
        if task is not None:
            new_tasks.append(task)
    if not new_tasks:
        return state
    return _with_tasks(state, new_tasks + list(state.tasks))


def toggle_task(state: PlannerState, task_id: str) -> PlannerState:
    """Flip completion of one task, stamping or clearing ``completed_at``."""
    tasks = []
    for task in state.tasks:
        if task.id == task_id:
            completed = not task.completed
            task = task.model_copy(
                update={
                    "completed": completed,
                    "completed_at": now_iso() if completed else None,
                }
            )
        tasks.append(task)
    return _with_tasks(state, tasks)


def rate_task(state: PlannerState, task_id: str, rating: int) -> PlannerState:
    """Set the rating of one task. Bounds are the caller's responsibility."""
    tasks = [
        task.model_copy(update={"rating": rating}) if task.id == task_id else task
        for task in state.tasks
    ]
    return _with_tasks(state, tasks)


def delete_task(state: PlannerState, task_id: str) -> PlannerState:
    return _with_tasks(state, [task for task in state.tasks if task.id != task_id])


def filter_tasks(
    tasks: Iterable[Task], target_date: str, task_filter: TaskFilter = TaskFilter.ALL
) -> List[Task]:
    """Tasks of one day narrowed by completion status, in list order."""
    visible = []
    for task in tasks:
        if task.date != target_date:
            continue
        if task_filter == TaskFilter.PENDING and task.completed:
            continue
        if task_filter == TaskFilter.COMPLETED and not task.completed:
            continue
        visible.append(task)
    return visible


def visible_tasks(
    state: PlannerState, target_date: str, task_filter: TaskFilter = TaskFilter.ALL
) -> List[Task]:
    return filter_tasks(state.tasks, target_date, task_filter)


def reorder_tasks(
    state: PlannerState, new_order: Iterable[Task], current_date: str
) -> PlannerState:
    """
    Apply a new order for the visible tasks of ``current_date``.

    The visible list may be filtered, so only the slots the reordered tasks
    occupied among the day's tasks are rewritten; hidden tasks of the same
    day stay where they were. Tasks of other days keep their relative order
    and are placed ahead of the day's tasks.

    Args:
        state: Current planner state
        new_order: The visible tasks in their new order (ids are matched)
        current_date: The day being displayed, YYYY-MM-DD

    Returns:
        PlannerState: New state with the reordered day
    """
    other_date_tasks = [task for task in state.tasks if task.date != current_date]
    current_date_tasks = [task for task in state.tasks if task.date == current_date]

    original_positions = {task.id: i for i, task in enumerate(current_date_tasks)}

    # Unknown ids are dropped; each id is placed at most once.
    valid_ids = []
    for task in new_order:
        task_id = task.id if isinstance(task, Task) else task
        if task_id in original_positions and task_id not in valid_ids:
            valid_ids.append(task_id)

    slots = sorted(original_positions[task_id] for task_id in valid_ids)

    reordered = list(current_date_tasks)
    for slot, task_id in zip(slots, valid_ids):
        reordered[slot] = current_date_tasks[original_positions[task_id]]

    return _with_tasks(state, other_date_tasks + reordered)


def move_task(
    state: PlannerState,
    task_id: str,
    offset: int,
    current_date: str,
    task_filter: TaskFilter = TaskFilter.ALL,
) -> PlannerState:
    """Move one visible task up (negative offset) or down within the filtered view."""
    visible = visible_tasks(state, current_date, task_filter)
    ids = [task.id for task in visible]
    if task_id not in ids:
        return state
    index = ids.index(task_id)
    target = max(0, min(len(visible) - 1, index + offset))
    if target == index:
        return state
    moved = visible.pop(index)
    visible.insert(target, moved)
    return reorder_tasks(state, visible, current_date)


def set_mission(state: PlannerState, mission: str) -> PlannerState:
    return state.model_copy(update={"daily_mission": mission})


def set_user_name(state: PlannerState, user_name: str) -> PlannerState:
    return state.model_copy(update={"user_name": user_name})


def append_chat_message(
    state: PlannerState, target_date: str, message: ChatMessage
) -> PlannerState:
    """Append one message to a day's transcript, creating the transcript if needed."""
    history = dict(state.chat_history)
    history[target_date] = list(history.get(target_date, [])) + [message]
    return state.model_copy(update={"chat_history": history})
