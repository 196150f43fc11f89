"""
Database helpers for Supabase integration.
Stores the calendar configuration and per-day overrides (holiday names, notes).
"""

import json
import os
from typing import Dict, Optional, Tuple

import streamlit as st
from loguru import logger
from supabase import Client, create_client

from calc import DEFAULT_CONFIG, CalendarConfig, parse_date_key


def get_secret(name: str, default=None):
    # prefer Streamlit secrets, fallback to env vars
    try:
        return st.secrets[name]
    except Exception:
        return os.getenv(name, default)


def get_current_user_id() -> str:
    return get_secret("DEFAULT_USER_ID", "me")


def get_supabase_client() -> Client:
    """Initialize and return Supabase client using Streamlit secrets."""
    url = get_secret("SUPABASE_URL")
    key = get_secret("SUPABASE_SERVICE_KEY")
    if not url or not key:
        raise RuntimeError("Missing SUPABASE_URL / SUPABASE_SERVICE_KEY.")
    return create_client(url, key)


def _default_config() -> CalendarConfig:
    return CalendarConfig(
        hours_per_day=DEFAULT_CONFIG.hours_per_day,
        work_days=list(DEFAULT_CONFIG.work_days),
        country=get_secret("DEFAULT_COUNTRY", DEFAULT_CONFIG.country),
    )


def get_config(user_id: str) -> CalendarConfig:
    """
    Get the user's calendar configuration, creating the default if none exists.

    Args:
        user_id: User identifier

    Returns:
        CalendarConfig
    """
    supabase = get_supabase_client()

    try:
        result = supabase.table('calendar_config').select('*').eq('user_id', user_id).execute()

        if result.data:
            row = result.data[0]
            return CalendarConfig.from_dict({
                'hours_per_day': row.get('hours_per_day'),
                'work_days': json.loads(row.get('work_days_json') or 'null'),
                'country': row.get('country'),
            })

        config = _default_config()
        supabase.table('calendar_config').insert(_config_row(user_id, config)).execute()
        logger.info(f"Created default calendar config for {user_id}")
        return config

    except Exception as e:
        logger.error(f"Error getting config for {user_id}: {e}")
        st.error(f"Error getting settings: {e}")
        return _default_config()


def _config_row(user_id: str, config: CalendarConfig) -> Dict:
    return {
        'user_id': user_id,
        'hours_per_day': config.hours_per_day,
        'work_days_json': json.dumps(list(config.work_days)),
        'country': config.country,
    }


def upsert_config(user_id: str, config: CalendarConfig) -> None:
    """
    Update the user's calendar configuration.

    Args:
        user_id: User identifier
        config: New configuration
    """
    supabase = get_supabase_client()
    row = _config_row(user_id, config)

    try:
        result = supabase.table('calendar_config').update(row).eq('user_id', user_id).execute()

        if not result.data:
            # If no record was updated, insert new one
            supabase.table('calendar_config').insert(row).execute()

    except Exception as e:
        logger.error(f"Error updating config for {user_id}: {e}")
        st.error(f"Error updating settings: {e}")


def get_overrides(user_id: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Load all custom holidays and notes for a user.

    Args:
        user_id: User identifier

    Returns:
        (custom_holidays, notes) keyed by YYYY-MM-DD
    """
    supabase = get_supabase_client()
    custom_holidays: Dict[str, str] = {}
    notes: Dict[str, str] = {}

    try:
        result = supabase.table('day_overrides').select('date, holiday_name, note').eq('user_id', user_id).execute()
    except Exception as e:
        logger.error(f"Error loading overrides for {user_id}: {e}")
        st.error(f"Error loading holidays and notes: {e}")
        return custom_holidays, notes

    for row in result.data or []:
        # PostgREST may return "YYYY-MM-DD" or a longer timestamp string
        key = str(row.get('date') or '')[:10]
        try:
            parse_date_key(key)
        except ValueError:
            logger.warning(f"Skipping override row with bad date: {row.get('date')!r}")
            continue
        if row.get('holiday_name'):
            custom_holidays[key] = row['holiday_name']
        if row.get('note'):
            notes[key] = row['note']

    return custom_holidays, notes


def save_day(user_id: str, day_key: str, holiday_name: Optional[str], note: Optional[str]) -> None:
    """
    Store or remove the overrides for one day.

    A day with neither a holiday name nor a note is deleted.

    Args:
        user_id: User identifier
        day_key: YYYY-MM-DD
        holiday_name: Holiday name or None
        note: Note text or None
    """
    supabase = get_supabase_client()

    try:
        if not holiday_name and not note:
            supabase.table('day_overrides').delete().eq('user_id', user_id).eq('date', day_key).execute()
            return

        fields = {'holiday_name': holiday_name or None, 'note': note or None}
        result = supabase.table('day_overrides').update(fields).eq('user_id', user_id).eq('date', day_key).execute()

        if not result.data:
            fields.update({'user_id': user_id, 'date': day_key})
            supabase.table('day_overrides').insert(fields).execute()

    except Exception as e:
        logger.error(f"Error saving {day_key} for {user_id}: {e}")
        st.error(f"Error updating day: {e}")


def save_overrides(
    user_id: str,
    old: Tuple[Dict[str, str], Dict[str, str]],
    new: Tuple[Dict[str, str], Dict[str, str]],
) -> int:
    """
    Persist the days whose holiday name or note changed between two snapshots.

    Returns:
        Number of days written
    """
    old_holidays, old_notes = old
    new_holidays, new_notes = new
    changed = 0
    for key in sorted(set(old_holidays) | set(new_holidays) | set(old_notes) | set(new_notes)):
        if old_holidays.get(key) == new_holidays.get(key) and old_notes.get(key) == new_notes.get(key):
            continue
        save_day(user_id, key, new_holidays.get(key), new_notes.get(key))
        changed += 1
    return changed


def clear_overrides(user_id: str) -> None:
    """Delete every custom holiday and note for a user."""
    supabase = get_supabase_client()
    try:
        supabase.table('day_overrides').delete().eq('user_id', user_id).execute()
        logger.info(f"Cleared all overrides for {user_id}")
    except Exception as e:
        logger.error(f"Error clearing overrides for {user_id}: {e}")
        st.error(f"Error clearing holidays and notes: {e}")
