"""
Streamlit Frontend for the Custody Calendar

One page per concern:
- Calendar: the month grid with custody bars and activities
- Custody Schedule: weekly assignments per parent
- Settings: connection status

DESIGN PRINCIPLES:
1. A tap on a day either opens it or asks for an activity name
2. Nothing is written until the user presses Save or Confirm
3. Errors are shown in plain language and nothing is hidden
"""

import asyncio

import streamlit as st

from custody_calendar.config import get_settings, validate_all_settings
from custody_calendar.models.schedule import WEEKDAY_NAMES, InputKind, ParentType
from custody_calendar.orchestrator import CalendarSession, create_app_components
from custody_calendar.presentation import CellDescriptor
from custody_calendar.services import AuthError, StorageError
from custody_calendar.validation import ValidationError


# Page configuration
st.set_page_config(
    page_title="Custody Calendar",
    page_icon="📅",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .custody-bar {
        height: 6px;
    }
    .activity-label {
        font-size: 0.8em;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_session() -> CalendarSession:
    """One calendar session per browser session."""
    if "calendar_session" not in st.session_state:
        try:
            session, _ = create_app_components(use_storage=True)
        except Exception as e:
            st.error(f"Failed to initialize: {e}")
            session, _ = create_app_components(use_storage=False)
        st.session_state["calendar_session"] = session
    return st.session_state["calendar_session"]


def show_error(error: Exception):
    """Plain-language message for the errors the calendar can raise."""
    if isinstance(error, ValidationError):
        for issue in error.issues:
            st.warning(issue.message)
    elif isinstance(error, AuthError):
        st.error("🔒 Please sign in again to change the calendar.")
    elif isinstance(error, StorageError):
        st.error(f"❌ Could not reach the calendar storage: {error}")
    else:
        st.error(f"❌ Something went wrong: {error}")


def main():
    """Main application entry point."""
    session = get_session()

    st.sidebar.title("📅 Custody Calendar")
    st.sidebar.markdown("---")

    child_id = st.sidebar.text_input("Child ID", value=session.child_id or "")
    child_name = st.sidebar.text_input("Child name", value=session.child_name or "")
    if st.sidebar.button("Open calendar") and child_id.strip():
        try:
            run_async(session.load_child(child_id.strip(), child_name.strip() or None))
        except Exception as e:
            show_error(e)

    st.sidebar.markdown("---")
    page = st.sidebar.radio(
        "Navigate to:",
        ["📅 Calendar", "👪 Custody Schedule", "⚙️ Settings"],
        index=0,
    )

    if page == "⚙️ Settings":
        render_settings_page()
    elif not session.child_id:
        st.info("Enter a child ID in the sidebar and press **Open calendar**.")
    elif page == "📅 Calendar":
        render_calendar_page(session)
    elif page == "👪 Custody Schedule":
        render_schedule_page(session)


def render_calendar_page(session: CalendarSession):
    """Render the month grid, the day editor and the upcoming list."""
    view = session.month_view()

    prev_col, title_col, next_col = st.columns([1, 4, 1])
    with prev_col:
        if st.button("◀", key="prev_month"):
            try:
                run_async(session.previous_month())
            except Exception as e:
                show_error(e)
            st.rerun()
    with title_col:
        st.markdown(f"<h2 style='text-align:center'>{view.title}</h2>", unsafe_allow_html=True)
    with next_col:
        if st.button("▶", key="next_month"):
            try:
                run_async(session.next_month())
            except Exception as e:
                show_error(e)
            st.rerun()

    header = st.columns(8)
    header[0].markdown("**Wk**")
    for column, name in zip(header[1:], view.day_names):
        column.markdown(f"**{name}**")

    for row in view.rows:
        columns = st.columns(8)
        columns[0].markdown(f"_{row.week_number}_")
        for column, cell in zip(columns[1:], row.cells):
            with column:
                render_cell(session, cell)

    st.markdown("---")
    render_day_editor(session)

    st.markdown("---")
    if st.button("✅ Confirm selection", type="primary"):
        try:
            confirmed = run_async(session.confirm_selection())
            st.success(f"Saved {len(confirmed)} day(s).")
        except Exception as e:
            show_error(e)

    st.markdown("### Upcoming")
    upcoming = session.upcoming()
    if not upcoming:
        st.caption("Nothing scheduled this month.")
    for entry in upcoming:
        st.markdown(f"- **{entry.date.key}**: {entry.activity}")


def render_cell(session: CalendarSession, cell: CellDescriptor):
    """Render a single day of the grid."""
    if cell.custody is not None:
        bar = cell.custody
        st.markdown(
            f"<div class='custody-bar' title='{bar.parent_name}' style='"
            f"background:{bar.color};"
            f"border-radius:{bar.left_radius}px {bar.right_radius}px "
            f"{bar.right_radius}px {bar.left_radius}px;"
            f"margin:0 {bar.right_margin}px 0 {bar.left_margin}px'></div>",
            unsafe_allow_html=True,
        )

    label = str(cell.day_number)
    if cell.is_today:
        label = f"[{label}]"
    if cell.is_selected:
        label = f"● {label}"

    if not cell.tappable:
        st.caption(label)
        return

    if st.button(label, key=f"cell_{cell.date.key}"):
        try:
            run_async(session.select_date(cell.date))
        except Exception as e:
            show_error(e)
        st.rerun()

    if cell.activity:
        st.markdown(f"<div class='activity-label'>{cell.activity}</div>", unsafe_allow_html=True)


def render_day_editor(session: CalendarSession):
    """Either the pending name input or the detail view of a selected day."""
    pending = session.pending_input
    if pending is not None:
        verb = "Add" if pending.kind == InputKind.CREATE_ACTIVITY else "Rename"
        with st.form(key=f"input_{pending.token}"):
            st.markdown(f"### {verb} activity on {pending.date.key}")
            name = st.text_input("Activity", value=pending.initial_value)
            save_col, cancel_col = st.columns(2)
            save = save_col.form_submit_button("💾 Save", type="primary")
            cancel = cancel_col.form_submit_button("✖ Cancel")

        if save:
            try:
                run_async(session.commit(pending, name))
                st.rerun()
            except Exception as e:
                show_error(e)
        elif cancel:
            run_async(session.cancel(pending))
            st.rerun()
        return

    day = session.open_detail
    if day is None:
        st.caption("Tap a day to add an activity.")
        return

    entry = session.selection.get(day)
    st.markdown(f"### {day.key}")
    st.markdown(f"**{entry.activity if entry else ''}**")

    edit_col, remove_col, close_col = st.columns(3)
    if edit_col.button("✏️ Rename"):
        try:
            run_async(session.request_input(InputKind.RENAME_ACTIVITY, day))
        except Exception as e:
            show_error(e)
        st.rerun()
    if remove_col.button("🗑 Remove"):
        try:
            run_async(session.remove_activity(day))
            st.rerun()
        except Exception as e:
            show_error(e)
    if close_col.button("Close"):
        session.close_detail()
        st.rerun()


def render_schedule_page(session: CalendarSession):
    """Render the weekly custody assignments and the form to add one."""
    st.title("👪 Custody Schedule")

    assignments = session.assignments
    if not assignments:
        st.info("No custody schedule yet.")
    for assignment in assignments:
        st.markdown(
            f"<span style='color:{assignment.color}'>■</span> "
            f"**{assignment.parent_name}**: {', '.join(assignment.day_labels)}",
            unsafe_allow_html=True,
        )

    st.markdown("---")
    settings = get_settings().app

    with st.form(key="new_assignment"):
        st.markdown("### Add a weekly assignment")
        parent_type = st.radio(
            "Parent",
            [ParentType.MOM, ParentType.DAD],
            format_func=lambda p: p.default_name,
            horizontal=True,
        )
        parent_name = st.text_input("Name", value="")
        days = st.multiselect(
            "Days",
            options=list(range(7)),
            format_func=lambda d: WEEKDAY_NAMES[d],
        )
        default_color = settings.mom_color if parent_type == ParentType.MOM else settings.dad_color
        color = st.color_picker("Color", value=default_color)
        submitted = st.form_submit_button("💾 Save schedule", type="primary")

    if submitted:
        try:
            created = run_async(session.add_recurring_assignment(
                days_of_week=days,
                parent_name=parent_name or parent_type.default_name,
                parent_type=parent_type,
                color=color,
            ))
            st.success(f"Saved: {created.parent_name} on {', '.join(created.day_labels)}")
            st.rerun()
        except Exception as e:
            show_error(e)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    checks = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Signed-in user", "auth"),
        ("Calendar settings", "app"),
    ]

    for name, key in checks:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Configure the app with a `.env` file: `GOOGLE_SHEETS_CREDENTIALS_PATH`, "
        "`GOOGLE_SHEETS_SPREADSHEET_ID`, `CALENDAR_AUTH_USER_ID` and "
        "`CALENDAR_STORAGE_BACKEND` (`sheets` or `memory`)."
    )


if __name__ == "__main__":
    main()
