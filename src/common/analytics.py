"""
Aggregations behind the insights dashboard and the calendar picker.

All functions are pure and work on plain task lists.
"""

import calendar
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from schema.planner_models import Priority, Task

TREND_DAYS = 14


def _average(values: List[int]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def compute_stats(tasks: Iterable[Task]) -> Dict[str, Any]:
    """
    Summarize task history for the insights view.

    Args:
        tasks: Every task across all days

    Returns:
        Dict[str, Any]: ``total``, ``completed``, ``rate`` (percent),
        ``avg_rating`` (one decimal or "N/A"), ``categories``, ``priorities``
        and ``trend`` (last 14 days that have tasks, oldest first)
    """
    tasks = list(tasks)
    total = len(tasks)
    completed_tasks = [task for task in tasks if task.completed]
    completed = len(completed_tasks)

    categories: Dict[str, Dict[str, Any]] = {}
    for task in tasks:
        entry = categories.setdefault(task.category, {"count": 0, "ratings": []})
        entry["count"] += 1
        if task.rating:
            entry["ratings"].append(task.rating)
    category_data = [
        {"name": name, "value": entry["count"], "avg_rating": _average(entry["ratings"]) or 0}
        for name, entry in categories.items()
    ]

    priority_data = []
    for priority in (Priority.HIGH, Priority.MEDIUM, Priority.LOW):
        matching = [task for task in tasks if task.priority == priority]
        done = sum(1 for task in matching if task.completed)
        priority_data.append(
            {
                "name": priority.value.capitalize(),
                "rate": _percent(done, len(matching)),
                "count": len(matching),
            }
        )

    ratings = [task.rating for task in completed_tasks if task.rating is not None]
    avg_rating = _average(ratings)

    days: Dict[str, Dict[str, Any]] = {}
    for task in tasks:
        day = days.setdefault(task.date, {"date": task.date, "count": 0, "ratings": []})
        if task.completed:
            day["count"] += 1
            if task.rating:
                day["ratings"].append(task.rating)
    trend = [
        {"date": day["date"], "count": day["count"], "avg_rating": _average(day["ratings"]) or 0}
        for day in sorted(days.values(), key=lambda d: d["date"])[-TREND_DAYS:]
    ]

    return {
        "total": total,
        "completed": completed,
        "rate": _percent(completed, total),
        "avg_rating": avg_rating if avg_rating is not None else "N/A",
        "categories": category_data,
        "priorities": priority_data,
        "trend": trend,
    }


def day_status(tasks: Iterable[Task], target_date: str) -> Optional[str]:
    """Calendar marker for one day: None, "pending" or "done"."""
    day_tasks = [task for task in tasks if task.date == target_date]
    if not day_tasks:
        return None
    return "pending" if any(not task.completed for task in day_tasks) else "done"


def month_grid(year: int, month: int) -> List[List[Optional[date]]]:
    """Weeks of the month, Sunday first, with None for padding cells."""
    weeks = calendar.Calendar(firstweekday=calendar.SUNDAY).monthdatescalendar(year, month)
    return [[day if day.month == month else None for day in week] for week in weeks]


def shift_date(target_date: str, days: int) -> str:
    """Move a YYYY-MM-DD day string by a number of days."""
    return (date.fromisoformat(target_date) + timedelta(days=days)).isoformat()


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1
