"""
Lumina Planner - Streamlit Application

Daily task board with an agenda-parsing assistant, a calendar picker and a
productivity insights view. State lives in a PlannerSession kept in
``st.session_state`` and is mirrored to storage after every change.
"""

import asyncio
import logging
from datetime import date

import pandas as pd
import streamlit as st
from dotenv import load_dotenv

from agents.planner_agent import handle_message, start_session, transcript_for
from common.analytics import compute_stats, day_status, month_grid, shift_date, shift_month
from common.shell_bridge import ShellBridgeError, get_shell_bridge
from core.settings import settings
from memory.planner_session import PlannerSession
from memory.task_store import (
    delete_task,
    move_task,
    rate_task,
    set_mission,
    toggle_task,
    visible_tasks,
)
from schema.planner_models import ChatRole, Priority, Task, TaskFilter

load_dotenv()

# App Configuration
APP_TITLE = "Lumina Planner"
APP_ICON = "✅"
SESSION_KEY = "planner_session"

PRIORITY_BADGES = {Priority.HIGH: "🔴 high", Priority.MEDIUM: "🟡 medium", Priority.LOW: "🟢 low"}
DAY_MARKERS = {"pending": "🔵", "done": "🟢"}

logger = logging.getLogger(__name__)


def today_str() -> str:
    return date.today().isoformat()


def get_session() -> PlannerSession:
    """Get the planner session from Streamlit state or create a new one."""
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = PlannerSession()
    return st.session_state[SESSION_KEY]


def init_view_state() -> None:
    defaults = {
        "selected_date": today_str(),
        "task_filter": TaskFilter.ALL.value,
        "editing_mission": False,
        "calendar_month": (date.today().year, date.today().month),
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


async def commit_and_rerun(session: PlannerSession) -> None:
    """Let background saves finish before Streamlit restarts the script."""
    await session.flush()
    st.rerun()


async def exit_app(session: PlannerSession) -> None:
    """Save, then ask the desktop shell to quit."""
    saved = await session.save_now()
    if not saved:
        logger.error("Failed to save before exit")
    bridge = get_shell_bridge()
    if bridge is not None:
        try:
            await bridge.quit()
        except ShellBridgeError as e:
            logger.error(f"Quit request failed: {e}")
    st.success("Planner saved. You can close this window.")
    st.stop()


async def minimize_app() -> None:
    bridge = get_shell_bridge()
    if bridge is None:
        st.toast("Minimize is only available inside the desktop shell")
        return
    try:
        await bridge.minimize()
    except ShellBridgeError as e:
        logger.error(f"Minimize request failed: {e}")


def format_day(selected: str) -> str:
    day = date.fromisoformat(selected)
    if selected == today_str():
        return f"Today, {day.strftime('%b')} {day.day}"
    return day.strftime("%A, %B ") + f"{day.day}, {day.year}"


async def draw_mission(session: PlannerSession) -> None:
    with st.container(border=True):
        st.caption("DAILY MISSION")
        if st.session_state.editing_mission:
            text = st.text_area(
                "Mission", value=session.state.daily_mission, label_visibility="collapsed"
            )
            cols = st.columns([0.8, 0.1, 0.1])
            with cols[1]:
                if st.button("Cancel", key="cancel_mission"):
                    st.session_state.editing_mission = False
                    st.rerun()
            with cols[2]:
                if st.button("Save", key="save_mission", type="primary"):
                    session.apply(set_mission, text.strip())
                    st.session_state.editing_mission = False
                    await commit_and_rerun(session)
        else:
            mission = session.state.daily_mission or "Define your focus for today..."
            cols = st.columns([0.9, 0.1])
            with cols[0]:
                st.markdown(f"### *\"{mission}\"*")
            with cols[1]:
                if st.button("Edit", key="edit_mission"):
                    st.session_state.editing_mission = True
                    st.rerun()


def draw_calendar(session: PlannerSession) -> None:
    """Month picker with a marker on days that have tasks."""
    year, month = st.session_state.calendar_month
    nav = st.columns([0.15, 0.7, 0.15])
    with nav[0]:
        if st.button("‹", key="prev_month"):
            st.session_state.calendar_month = shift_month(year, month, -1)
            st.rerun()
    with nav[1]:
        st.markdown(f"**{date(year, month, 1).strftime('%B %Y')}**")
    with nav[2]:
        if st.button("›", key="next_month"):
            st.session_state.calendar_month = shift_month(year, month, 1)
            st.rerun()

    header = st.columns(7)
    for col, name in zip(header, ["Su", "Mo", "Tu", "We", "Th", "Fr", "Sa"]):
        col.caption(name)

    for week in month_grid(year, month):
        cols = st.columns(7)
        for col, day in zip(cols, week):
            if day is None:
                continue
            iso = day.isoformat()
            marker = DAY_MARKERS.get(day_status(session.state.tasks, iso), "")
            selected = iso == st.session_state.selected_date
            if col.button(
                f"{day.day}{marker}",
                key=f"day_{iso}",
                type="primary" if selected else "secondary",
            ):
                st.session_state.selected_date = iso
                st.rerun()


async def draw_date_bar(session: PlannerSession) -> None:
    selected = st.session_state.selected_date
    cols = st.columns([0.08, 0.4, 0.08, 0.44])
    with cols[0]:
        if st.button("◀", key="prev_day"):
            st.session_state.selected_date = shift_date(selected, -1)
            st.rerun()
    with cols[1]:
        with st.popover(format_day(selected), use_container_width=True):
            draw_calendar(session)
    with cols[2]:
        if st.button("▶", key="next_day"):
            st.session_state.selected_date = shift_date(selected, 1)
            st.rerun()
    with cols[3]:
        st.radio(
            "Filter",
            options=[f.value for f in TaskFilter],
            key="task_filter",
            horizontal=True,
            label_visibility="collapsed",
        )


async def draw_task(session: PlannerSession, task: Task, index: int, count: int) -> None:
    selected = st.session_state.selected_date
    task_filter = TaskFilter(st.session_state.task_filter)

    with st.container(border=True):
        cols = st.columns([0.07, 0.73, 0.2])
        with cols[0]:
            checked = st.checkbox(
                "done", value=task.completed, key=f"toggle_{task.id}", label_visibility="collapsed"
            )
            if checked != task.completed:
                session.apply(toggle_task, task.id)
                await commit_and_rerun(session)
        with cols[1]:
            st.caption(f"{PRIORITY_BADGES[task.priority]} · {task.category}")
            title = f"~~{task.title}~~" if task.completed else task.title
            st.markdown(f"**{title}**")
            st.write(task.description)
        with cols[2]:
            buttons = st.columns(3)
            if buttons[0].button("↑", key=f"up_{task.id}", disabled=index == 0):
                session.apply(move_task, task.id, -1, selected, task_filter)
                await commit_and_rerun(session)
            if buttons[1].button("↓", key=f"down_{task.id}", disabled=index == count - 1):
                session.apply(move_task, task.id, 1, selected, task_filter)
                await commit_and_rerun(session)
            if buttons[2].button("🗑", key=f"delete_{task.id}", help="Delete task"):
                session.apply(delete_task, task.id)
                await commit_and_rerun(session)

        if task.completed:
            st.caption("PERFORMANCE RATING")
            # st.feedback returns a 0-based star index
            stars = st.feedback("stars", key=f"rate_{task.id}")
            if stars is not None and stars + 1 != task.rating:
                session.apply(rate_task, task.id, stars + 1)
                await commit_and_rerun(session)
            elif stars is None and task.rating:
                st.caption("⭐" * task.rating)


async def draw_board(session: PlannerSession) -> None:
    await draw_mission(session)
    await draw_date_bar(session)

    tasks = visible_tasks(
        session.state, st.session_state.selected_date, TaskFilter(st.session_state.task_filter)
    )
    if not tasks:
        with st.container(border=True):
            st.markdown("#### Clear Horizon")
            st.caption("No tasks for this day. Ready to plan some?")
        return

    for index, task in enumerate(tasks):
        await draw_task(session, task, index, len(tasks))


async def draw_chat(session: PlannerSession) -> None:
    selected = st.session_state.selected_date
    st.markdown("#### Lumina AI Assistant")
    messages = st.container(height=520)
    with messages:
        for message in transcript_for(session.state, selected):
            if message.role == ChatRole.USER:
                with st.chat_message("user", avatar="👤"):
                    st.markdown(message.content)
            else:
                with st.chat_message("assistant", avatar="🤖"):
                    st.markdown(message.content)

    if prompt := st.chat_input("Paste your rough agenda or chat..."):
        with messages:
            with st.chat_message("user", avatar="👤"):
                st.markdown(prompt)
            with st.chat_message("assistant", avatar="🤖"):
                with st.spinner("Thinking..."):
                    await handle_message(session, prompt, selected)
        await commit_and_rerun(session)


def draw_insights(session: PlannerSession) -> None:
    st.markdown("## Your Velocity")
    st.caption("Visualizing your progress over the last few weeks.")

    if not session.state.tasks:
        st.info(
            "No data to analyze yet. Your productivity insights will appear here "
            "once you start creating and completing tasks."
        )
        return

    stats = compute_stats(session.state.tasks)
    cards = st.columns(4)
    cards[0].metric("📋 Total Tasks", stats["total"])
    cards[1].metric("✅ Completed", stats["completed"])
    cards[2].metric("⭐ Avg. Rating", stats["avg_rating"])
    cards[3].metric("⚡ Efficiency", f"{stats['rate']}%")

    left, right = st.columns(2)
    with left:
        st.markdown("**Completion Trend**")
        trend = pd.DataFrame(stats["trend"]).set_index("date")
        st.area_chart(trend[["count"]].rename(columns={"count": "Completed Tasks"}))
        st.line_chart(trend[["avg_rating"]].rename(columns={"avg_rating": "Avg Performance"}))
    with right:
        st.markdown("**Priority Completion Rate (%)**")
        priorities = pd.DataFrame(stats["priorities"]).set_index("name")
        st.bar_chart(priorities[["rate"]], horizontal=True)

    left, right = st.columns(2)
    categories = pd.DataFrame(stats["categories"]).set_index("name")
    with left:
        st.markdown("**Focus Areas**")
        st.bar_chart(categories[["value"]])
    with right:
        st.markdown("**Category Performance Score**")
        st.bar_chart(categories[["avg_rating"]])


async def main():
    """Main application entry point."""
    st.set_page_config(
        page_title=APP_TITLE,
        page_icon=APP_ICON,
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    logging.basicConfig(level=settings.LOG_LEVEL)

    session = get_session()
    init_view_state()
    await start_session(session)

    header = st.columns([0.7, 0.15, 0.15])
    with header[0]:
        st.title(f"{APP_ICON} {APP_TITLE}")
        st.caption("PERSONAL FOCUS HUB")
    with header[1]:
        if st.button("_ Minimize", use_container_width=True):
            await minimize_app()
    with header[2]:
        if st.button("✕ Exit", use_container_width=True, help="Save and exit"):
            await exit_app(session)

    board_tab, insights_tab = st.tabs(["My Board", "Insights"])
    with board_tab:
        left, right = st.columns([0.62, 0.38], gap="large")
        with left:
            await draw_board(session)
        with right:
            await draw_chat(session)
    with insights_tab:
        draw_insights(session)

    # Saves scheduled during this run must finish before the loop closes.
    await session.flush()


if __name__ == "__main__":
    asyncio.run(main())
