"""
Streamlit web app for the workday dashboard.
Main UI with calendar grid, month statistics, day editor and holiday auto-fill.
"""

import html
from datetime import date
from typing import Dict, List

import pandas as pd
import streamlit as st

# Import our modules
import calc
import db
import holiday_service
from calc import CalendarConfig, DayStat, DayType, MonthStats

# Weekday indices use 0 = Sunday, listed Monday first for display
WORKDAY_OPTIONS = [1, 2, 3, 4, 5, 6, 0]
WORKDAY_LABELS = {1: 'Mon', 2: 'Tue', 3: 'Wed', 4: 'Thu', 5: 'Fri', 6: 'Sat', 0: 'Sun'}

CELL_CSS = """
<style>
.day-cell {
    border: 1px solid #e5e7eb;
    border-radius: 0.5rem;
    padding: 1.4rem 0.4rem 0.4rem;
    min-height: 96px;
    position: relative;
    font-size: 12px;
}
.day-number { position: absolute; top: .3rem; left: .5rem; font-weight: 700; font-size: 15px; }
.day-tag { position: absolute; top: .35rem; right: .5rem; font-size: 10px; opacity: .8; }
.workday { background: #ffffff; }
.weekend { background: #fffbeb; color: #6b7280; }
.holiday { background: #fff1f2; color: #9f1239; }
.first-day { border-color: #06b6d4; }
.last-day { border-color: #a855f7; }
.padding-day { opacity: .4; }
.today { box-shadow: 0 0 0 2px #4f46e5; }
.holiday-badge { font-weight: 600; }
.note-text { font-style: italic; color: #475569; overflow: hidden; }
.weekday-label { text-align: center; font-weight: bold; padding: 6px; }
</style>
"""


def flash(message: str, state=None):
    """Keep a success message in session state so it survives st.rerun()."""
    state = st.session_state if state is None else state
    state['flash'] = message


def pop_flash(state=None):
    state = st.session_state if state is None else state
    return state.pop('flash', None)


def init_session_state():
    if 'current_year' not in st.session_state:
        today = date.today()
        st.session_state.current_year = today.year
        st.session_state.current_month = today.month

    if 'user_id' not in st.session_state:
        st.session_state.user_id = db.get_current_user_id()


def load_data():
    """Load config and overrides for the current user."""
    user_id = st.session_state.user_id
    try:
        config = db.get_config(user_id)
        custom_holidays, notes = db.get_overrides(user_id)
        return config, custom_holidays, notes
    except Exception as e:
        st.error(f"Error loading data: {e}")
        return None, {}, {}


def auto_fill_on_launch(config: CalendarConfig, custom_holidays: Dict[str, str], notes: Dict[str, str]):
    """Fetch holidays once per session, only when the visible month has none yet."""
    if st.session_state.get('auto_fetched') or not config.country:
        return custom_holidays
    st.session_state['auto_fetched'] = True

    year, month = st.session_state.current_year, st.session_state.current_month
    if calc.has_holidays_for_month(custom_holidays, year, month):
        return custom_holidays

    try:
        with st.spinner("Fetching public holidays..."):
            suggestions = holiday_service.fetch_public_holidays(config.country, year, month)
    except holiday_service.HolidayFetchError as e:
        st.warning(f"Could not auto-fetch holidays: {e}")
        return custom_holidays

    merged = calc.merge_holidays(custom_holidays, suggestions)
    db.save_overrides(st.session_state.user_id, (custom_holidays, notes), (merged, notes))
    return merged


def render_sidebar(config: CalendarConfig, stats: MonthStats, custom_holidays: Dict[str, str], notes: Dict[str, str]):
    """Render the sidebar with summary and controls."""
    user_id = st.session_state.user_id
    year, month = st.session_state.current_year, st.session_state.current_month

    message = pop_flash()
    if message:
        st.sidebar.success(message)

    st.sidebar.header("📊 Summary")
    col1, col2 = st.sidebar.columns(2)
    col1.metric("Working Days", stats.total_working_days)
    col2.metric("Remaining", stats.remaining_working_days)
    col1.metric("Hours", f"{stats.total_working_hours:g}")
    col2.metric("Holidays", stats.total_holidays)
    st.sidebar.markdown(f"**Weekend days:** {stats.total_weekend_days} of {stats.total_days}")

    if stats.total_days > 0:
        st.sidebar.progress(stats.total_working_days / stats.total_days)

    st.sidebar.markdown("**Month Distribution**")
    st.sidebar.bar_chart(pd.Series(calc.month_distribution(stats), name="Days"))

    # Configuration section
    st.sidebar.markdown("---")
    st.sidebar.header("⚙️ Configuration")

    new_hours = st.sidebar.number_input(
        "Hours per day",
        min_value=0.0,
        max_value=24.0,
        value=float(config.hours_per_day),
        step=0.5,
    )

    new_work_days = st.sidebar.multiselect(
        "Work days",
        options=WORKDAY_OPTIONS,
        default=[d for d in WORKDAY_OPTIONS if d in config.work_days],
        format_func=lambda d: WORKDAY_LABELS[d],
    )

    new_country = st.sidebar.text_input("Country", value=config.country)

    settings_changed = (
        new_hours != config.hours_per_day or
        set(new_work_days) != set(config.work_days) or
        new_country.strip() != config.country
    )

    if settings_changed:
        db.upsert_config(user_id, CalendarConfig(
            hours_per_day=new_hours,
            work_days=sorted(new_work_days),
            country=new_country.strip(),
        ))
        st.rerun()

    # Holiday auto-fill
    st.sidebar.markdown("---")
    st.sidebar.header("🪄 Holidays")

    source = st.sidebar.radio(
        "Source",
        options=list(holiday_service.SOURCES),
        format_func=lambda s: {'gemini': 'AI (Gemini)', 'library': 'holidays library'}[s],
        horizontal=True,
    )

    if st.sidebar.button("Auto-fill holidays", disabled=not config.country):
        try:
            with st.spinner("Fetching public holidays..."):
                suggestions = holiday_service.suggest_holidays(config.country, year, month, source)
            merged = calc.merge_holidays(custom_holidays, suggestions)
            added = db.save_overrides(user_id, (custom_holidays, notes), (merged, notes))
            flash(f"Added {added} holidays")
            st.rerun()
        except holiday_service.HolidayFetchError as e:
            st.sidebar.error(f"Failed to fetch holidays: {e}")

    if st.sidebar.button("Clear all holidays & notes"):
        st.session_state['confirm_clear'] = True

    if st.session_state.get('confirm_clear'):
        st.sidebar.warning("Remove all custom holidays and notes? This cannot be undone.")
        c1, c2 = st.sidebar.columns(2)
        if c1.button("Yes, clear"):
            db.clear_overrides(user_id)
            st.session_state['confirm_clear'] = False
            st.rerun()
        if c2.button("Cancel"):
            st.session_state['confirm_clear'] = False
            st.rerun()


def render_export_import(grid: List[DayStat], config: CalendarConfig, stats: MonthStats,
                         custom_holidays: Dict[str, str], notes: Dict[str, str]):
    """Render export/import controls."""
    year, month = st.session_state.current_year, st.session_state.current_month

    st.sidebar.markdown("---")
    st.sidebar.header("📁 Export/Import")

    st.sidebar.download_button(
        label="Export CSV",
        data=calc.build_month_csv(grid, config, stats, year, month),
        file_name=calc.export_file_name(year, month),
        mime="text/csv",
    )

    st.sidebar.download_button(
        label="Backup JSON",
        data=calc.serialize_overrides(config, custom_holidays, notes),
        file_name="workday-pro-backup.json",
        mime="application/json",
    )

    uploaded_file = st.sidebar.file_uploader("Restore JSON", type=['json'])
    if uploaded_file is not None:
        try:
            imported = calc.deserialize_overrides(uploaded_file.read().decode('utf-8'))
        except ValueError as e:
            st.sidebar.error(f"Error importing data: {e}")
            return

        if st.sidebar.button("Confirm Import"):
            user_id = st.session_state.user_id
            db.upsert_config(user_id, imported['config'])
            db.save_overrides(
                user_id,
                (custom_holidays, notes),
                (imported['custom_holidays'], imported['notes']),
            )
            flash("Data imported successfully!")
            st.rerun()


def day_css_classes(day: DayStat) -> str:
    classes = ['day-cell', day.day_type.value.lower()]
    if not day.is_current_month:
        classes.append('padding-day')
    if day.is_first_day:
        classes.append('first-day')
    if day.is_last_day:
        classes.append('last-day')
    if day.is_today:
        classes.append('today')
    return ' '.join(classes)


def render_day_cell(day: DayStat):
    """Render a single day cell."""
    # Holiday label takes precedence over the first/last tag
    if day.holiday_name:
        tag = ''
        body = f'<div class="holiday-badge">🎉 {html.escape(day.holiday_name[:18])}</div>'
    else:
        tag = 'Start' if day.is_first_day else ('End' if day.is_last_day else '')
        body = '<div>Weekend</div>' if day.day_type == DayType.WEEKEND else ''

    if day.note:
        body += f'<div class="note-text">📝 {html.escape(day.note[:30])}</div>'

    st.markdown(f"""
    <div class="{day_css_classes(day)}" title="{html.escape(day.quote)}">
        <div class="day-number">{day.date.day}</div>
        <div class="day-tag">{tag}</div>
        {body}
    </div>
    """, unsafe_allow_html=True)


def render_calendar(grid: List[DayStat]):
    """Render the month header, navigation and the 6x7 grid."""
    col1, col2, col3 = st.columns([1, 3, 1])

    with col1:
        if st.button("◀", key="prev_month"):
            y, m = calc.prev_month(st.session_state.current_year, st.session_state.current_month)
            st.session_state.current_year, st.session_state.current_month = y, m
            st.rerun()

    with col2:
        month_name = calc.get_month_name(st.session_state.current_month)
        st.markdown(f"<h2 style='text-align: center'>{month_name} {st.session_state.current_year}</h2>",
                    unsafe_allow_html=True)

    with col3:
        if st.button("▶", key="next_month"):
            y, m = calc.next_month(st.session_state.current_year, st.session_state.current_month)
            st.session_state.current_year, st.session_state.current_month = y, m
            st.rerun()

    cols = st.columns(7)
    for i, weekday in enumerate(calc.WEEKDAY_ABBR):
        with cols[i]:
            st.markdown(f"<div class='weekday-label'>{weekday}</div>", unsafe_allow_html=True)

    for week_start in range(0, len(grid), 7):
        cols = st.columns(7)
        for i, day in enumerate(grid[week_start:week_start + 7]):
            with cols[i]:
                render_day_cell(day)


def default_day_index(grid: List[DayStat], today: date) -> int:
    """Index of today in the grid, or 0 when today is not shown."""
    for i, day in enumerate(grid):
        if day.date == today:
            return i
    return 0


def render_day_editor(grid: List[DayStat], custom_holidays: Dict[str, str], notes: Dict[str, str], today: date):
    """Edit the holiday name and note of one day of the visible grid."""
    st.markdown("---")
    st.subheader("✏️ Edit day")

    by_key = {calc.format_date_key(d.date): d for d in grid}
    keys = list(by_key)
    default_index = default_day_index(grid, today)

    selected_key = st.selectbox(
        "Day",
        options=keys,
        index=default_index,
        format_func=lambda k: by_key[k].date.strftime('%a %d %b %Y'),
    )
    day = by_key[selected_key]

    st.info(f"💬 {day.quote}")

    with st.form(f"edit_{selected_key}"):
        holiday_name = st.text_input("Holiday name", value=day.holiday_name or '',
                                     help="Leave empty for a regular day.")
        note = st.text_area("Note", value=day.note or '')
        c1, c2 = st.columns(2)
        save = c1.form_submit_button("Save")
        clear = c2.form_submit_button("Clear day", disabled=not (day.holiday_name or day.note))

    if save or clear:
        if clear:
            new_holidays, new_notes = calc.clear_day(custom_holidays, notes, day.date)
        else:
            new_holidays, new_notes = calc.apply_day_edit(custom_holidays, notes, day.date, holiday_name, note)
        db.save_overrides(st.session_state.user_id, (custom_holidays, notes), (new_holidays, new_notes))
        st.rerun()


def main():
    """Main application function."""
    # Page configuration
    st.set_page_config(
        page_title="Workday Pro",
        page_icon="📅",
        layout="wide",
        initial_sidebar_state="expanded"
    )
    st.markdown(CELL_CSS, unsafe_allow_html=True)
    st.title("📅 Workday Pro")

    init_session_state()

    config, custom_holidays, notes = load_data()
    if config is None:
        st.error("Failed to load application data. Please check your Supabase configuration.")
        st.stop()

    custom_holidays = auto_fill_on_launch(config, custom_holidays, notes)

    # Captured once so every cell and the stats agree on "today"
    today = date.today()
    year, month = st.session_state.current_year, st.session_state.current_month
    grid = calc.generate_calendar_grid(year, month, config, custom_holidays, notes, today)
    stats = calc.calculate_month_stats(grid, config, today)

    render_sidebar(config, stats, custom_holidays, notes)
    render_export_import(grid, config, stats, custom_holidays, notes)
    render_calendar(grid)
    render_day_editor(grid, custom_holidays, notes, today)

    st.markdown("---")
    st.markdown("""
    **Instructions:**
    - Weekdays not in your work days are shown as weekends
    - A day with a holiday name always counts as a holiday, whatever its weekday
    - Auto-fill only adds holidays for dates you have not edited yourself
    - Export the month as CSV, or back up and restore all holidays and notes as JSON
    """)


if __name__ == "__main__":
    main()
