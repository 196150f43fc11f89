"""
Calendar utilities and business logic for the workday dashboard.
Pure functions for grid generation, day classification and month statistics.
"""

import calendar
import csv
import io
import json
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ValidationError, conint


class DayType(str, Enum):
    WORKDAY = 'WORKDAY'
    WEEKEND = 'WEEKEND'
    HOLIDAY = 'HOLIDAY'


class ConfigData(BaseModel):
    """Shape of a stored or imported calendar config."""
    hours_per_day: float = 8
    work_days: List[conint(ge=0, le=6)] = [1, 2, 3, 4, 5]
    country: str = 'INDIA'


@dataclass(frozen=True)
class CalendarConfig:
    """User calendar settings. work_days uses 0 = Sunday ... 6 = Saturday."""
    hours_per_day: float = 8
    work_days: List[int] = field(default_factory=lambda: [1, 2, 3, 4, 5])
    country: str = 'INDIA'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalendarConfig':
        """
        Build a config from a stored dict, falling back to defaults for missing keys.

        Raises:
            ValueError: if data is not a dict or holds values of the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"config must be an object, got {type(data).__name__}")
        try:
            parsed = ConfigData.model_validate({k: v for k, v in data.items() if v is not None})
        except ValidationError as e:
            raise ValueError(f"Invalid config: {e}") from e
        return cls(
            hours_per_day=parsed.hours_per_day,
            work_days=sorted(set(parsed.work_days)),
            country=parsed.country or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hours_per_day': self.hours_per_day,
            'work_days': list(self.work_days),
            'country': self.country,
        }


DEFAULT_CONFIG = CalendarConfig()


@dataclass(frozen=True)
class DayStat:
    date: date
    day_type: DayType
    is_current_month: bool
    is_today: bool
    is_first_day: bool
    is_last_day: bool
    quote: str
    holiday_name: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class MonthStats:
    total_days: int
    total_working_days: int
    remaining_working_days: int
    total_holidays: int
    total_weekend_days: int
    total_working_hours: float


GRID_SIZE = 42  # 6 weeks x 7 days

WEEKDAY_ABBR = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

LEADERSHIP_QUOTES = [
    "A leader is one who knows the way, goes the way, and shows the way. - John C. Maxwell",
    "Leadership is the capacity to translate vision into reality. - Warren Bennis",
    "Before you are a leader, success is all about growing yourself. When you become a leader, success is all about growing others. - Jack Welch",
    "The function of leadership is to produce more leaders, not more followers. - Ralph Nader",
    "Leadership and learning are indispensable to each other. - John F. Kennedy",
    "Innovation distinguishes between a leader and a follower. - Steve Jobs",
    "Do not follow where the path may lead. Go instead where there is no path and leave a trail. - Ralph Waldo Emerson",
    "A good leader takes a little more than his share of the blame, a little less than his share of the credit. - Arnold H. Glasow",
    "The art of leadership is saying no, not saying yes. It is very easy to say yes. - Tony Blair",
    "Great leaders are not defined by the absence of weakness, but rather by the presence of clear strengths. - John Zenger",
    "He who has never learned to obey cannot be a good commander. - Aristotle",
    "I suppose leadership at one time meant muscles; but today it means getting along with people. - Mahatma Gandhi",
    "Leadership is unlocking people's potential to become better. - Bill Bradley",
    "Become the kind of leader that people would follow voluntarily; even if you had no title or position. - Brian Tracy",
    "Leadership is not a position or a title, it is action and example. - Cory Booker",
    "The greatest leader is not necessarily the one who does the greatest things. He is the one that gets the people to do the greatest things. - Ronald Reagan",
    "To handle yourself, use your head; to handle others, use your heart. - Eleanor Roosevelt",
    "Leadership is the art of giving people a platform for spreading ideas that work. - Seth Godin",
    "A true leader has the confidence to stand alone, the courage to make tough decisions, and the compassion to listen to the needs of others. - Douglas MacArthur",
    "The challenge of leadership is to be strong, but not rude; be kind, but not weak; be bold, but not bully; be thoughtful, but not lazy; be humble, but not timid. - Jim Rohn",
    "Management is doing things right; leadership is doing the right things. - Peter Drucker",
    "Don't find fault, find a remedy. - Henry Ford",
    "Leaders think and talk about the solutions. Followers think and talk about the problems. - Brian Tracy",
    "A leader is a dealer in hope. - Napoleon Bonaparte",
    "You don't lead by pointing and telling people some place to go. You lead by going to that place and making a case. - Ken Kesey",
    "If your actions inspire others to dream more, learn more, do more and become more, you are a leader. - John Quincy Adams",
    "Earn your leadership every day. - Michael Jordan",
    "Leadership is the ability to guide others without force into a direction or decision that leaves them still feeling empowered and accomplished. - Lisa Cash Hanson",
    "Effective leadership is not about making speeches or being liked; leadership is defined by results not attributes. - Peter Drucker",
    "Anyone can hold the helm when the sea is calm. - Publilius Syrus",
    "A leader takes people where they want to go. A great leader takes people where they don't necessarily want to go, but ought to be. - Rosalynn Carter",
]


# --- date keys ---------------------------------------------------------------

def format_date_key(day_date: date) -> str:
    """Canonical YYYY-MM-DD key used by both override maps."""
    return f"{day_date.year:04d}-{day_date.month:02d}-{day_date.day:02d}"


def parse_date_key(key: str) -> date:
    """
    Parse a YYYY-MM-DD key back into a date.

    Raises:
        ValueError: if the key is not a valid canonical date key
    """
    if not isinstance(key, str) or len(key) != 10:
        raise ValueError(f"Invalid date key: {key!r}")
    try:
        parsed = date.fromisoformat(key)
    except ValueError as e:
        raise ValueError(f"Invalid date key: {key!r}") from e
    # fromisoformat also takes week dates like 2024-W07-3
    if format_date_key(parsed) != key:
        raise ValueError(f"Invalid date key: {key!r}")
    return parsed


def month_prefix(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def weekday_index(day_date: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday."""
    return (day_date.weekday() + 1) % 7


def days_in_month(year: int, month: int) -> int:
    """Number of days in the month, leap years included."""
    return calendar.monthrange(year, month)[1]


def get_days_in_month(year: int, month: int) -> List[date]:
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


# --- classification & grid ---------------------------------------------------

def quote_for_date(day_date: date) -> str:
    """
    Deterministic quote of the day.

    The month term is zero-based so the selection matches quotes
    already shown for saved data.
    """
    index = (day_date.year * 1000 + (day_date.month - 1) * 50 + day_date.day) % len(LEADERSHIP_QUOTES)
    return LEADERSHIP_QUOTES[index]


def calculate_day_stat(
    day_date: date,
    config: CalendarConfig,
    custom_holidays: Dict[str, str],
    notes: Dict[str, str],
    is_current_month: bool,
    today: Optional[date] = None,
) -> DayStat:
    """
    Classify a single calendar day.

    Args:
        day_date: Date to classify
        config: Calendar configuration
        custom_holidays: Date key -> holiday name
        notes: Date key -> note text
        is_current_month: Whether the date belongs to the displayed month
        today: Current local date (defaults to date.today())

    Returns:
        DayStat for the date
    """
    if today is None:
        today = date.today()

    date_key = format_date_key(day_date)
    holiday_name = custom_holidays.get(date_key)
    note = notes.get(date_key)

    if holiday_name is not None:
        day_type = DayType.HOLIDAY
    elif weekday_index(day_date) not in config.work_days:
        day_type = DayType.WEEKEND
    else:
        day_type = DayType.WORKDAY

    last_day = days_in_month(day_date.year, day_date.month)

    return DayStat(
        date=day_date,
        day_type=day_type,
        is_current_month=is_current_month,
        is_today=date_key == format_date_key(today),
        is_first_day=is_current_month and day_date.day == 1,
        is_last_day=is_current_month and day_date.day == last_day,
        quote=quote_for_date(day_date),
        holiday_name=holiday_name,
        note=note,
    )


def generate_calendar_grid(
    year: int,
    month: int,
    config: CalendarConfig,
    custom_holidays: Dict[str, str],
    notes: Dict[str, str],
    today: Optional[date] = None,
) -> List[DayStat]:
    """
    Generate the 42-cell month grid (6 weeks, Monday first).

    Args:
        year: Year (e.g., 2024)
        month: Month (1-12)
        config: Calendar configuration
        custom_holidays: Date key -> holiday name
        notes: Date key -> note text
        today: Current local date, captured once for the whole grid

    Returns:
        List of 42 DayStat records in chronological order
    """
    if today is None:
        today = date.today()

    first_day = date(year, month, 1)
    start_offset = (weekday_index(first_day) + 6) % 7

    grid = []

    # Previous month padding
    for i in range(start_offset):
        d = first_day - timedelta(days=start_offset - i)
        grid.append(calculate_day_stat(d, config, custom_holidays, notes, False, today))

    for d in get_days_in_month(year, month):
        grid.append(calculate_day_stat(d, config, custom_holidays, notes, True, today))

    # Next month padding
    next_first = first_day + timedelta(days=days_in_month(year, month))
    remaining_slots = GRID_SIZE - len(grid)
    for i in range(remaining_slots):
        d = next_first + timedelta(days=i)
        grid.append(calculate_day_stat(d, config, custom_holidays, notes, False, today))

    return grid


def calculate_month_stats(
    grid: List[DayStat], config: CalendarConfig, today: Optional[date] = None
) -> MonthStats:
    """
    Compute the monthly summary statistics.

    Args:
        grid: Grid produced by generate_calendar_grid
        config: Calendar configuration
        today: Current local date (defaults to date.today())

    Returns:
        MonthStats over the current-month cells only
    """
    if today is None:
        today = date.today()

    current_month_days = [d for d in grid if d.is_current_month]

    total_holidays = sum(1 for d in current_month_days if d.day_type == DayType.HOLIDAY)
    total_weekend_days = sum(1 for d in current_month_days if d.day_type == DayType.WEEKEND)
    working_days = [d for d in current_month_days if d.day_type == DayType.WORKDAY]

    # Compared as calendar dates only
    remaining = sum(1 for d in working_days if d.date >= today)

    return MonthStats(
        total_days=len(current_month_days),
        total_working_days=len(working_days),
        remaining_working_days=remaining,
        total_holidays=total_holidays,
        total_weekend_days=total_weekend_days,
        total_working_hours=len(working_days) * config.hours_per_day,
    )


def month_distribution(stats: MonthStats) -> Dict[str, int]:
    """Day counts per type for the month distribution chart."""
    return {
        'Working': stats.total_working_days,
        'Weekend': stats.total_weekend_days,
        'Holidays': stats.total_holidays,
    }


# --- override editing --------------------------------------------------------

def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def apply_day_edit(
    custom_holidays: Dict[str, str],
    notes: Dict[str, str],
    day_date: date,
    holiday_name: Optional[str],
    note: Optional[str],
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Apply an edit of one day's holiday name and note.

    Values are stripped; a blank or missing value removes the entry.
    The input maps are not modified.

    Returns:
        (custom_holidays, notes) as new dicts
    """
    key = format_date_key(day_date)
    next_holidays = dict(custom_holidays)
    next_notes = dict(notes)

    holiday_name = _clean(holiday_name)
    note = _clean(note)

    if holiday_name:
        next_holidays[key] = holiday_name
    else:
        next_holidays.pop(key, None)

    if note:
        next_notes[key] = note
    else:
        next_notes.pop(key, None)

    return next_holidays, next_notes


def clear_day(
    custom_holidays: Dict[str, str], notes: Dict[str, str], day_date: date
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Remove the holiday and note for a single day."""
    return apply_day_edit(custom_holidays, notes, day_date, None, None)


def merge_holidays(
    custom_holidays: Dict[str, str],
    suggestions: Iterable[Any],
    overwrite: bool = False,
) -> Dict[str, str]:
    """
    Merge suggested holidays into the custom holiday map.

    Args:
        custom_holidays: Existing date key -> name map
        suggestions: Items with .date/.name attributes or 'date'/'name' keys
        overwrite: Replace existing entries (manual edits are kept when False)

    Returns:
        New merged dict
    """
    merged = dict(custom_holidays)
    for item in suggestions:
        if isinstance(item, dict):
            key, name = item.get('date'), item.get('name')
        else:
            key, name = getattr(item, 'date', None), getattr(item, 'name', None)

        try:
            key = format_date_key(parse_date_key(key))
        except ValueError:
            logger.warning(f"Skipping holiday suggestion with bad date: {key!r}")
            continue

        name = _clean(name)
        if not name:
            continue
        if overwrite or key not in merged:
            merged[key] = name
    return merged


def has_holidays_for_month(custom_holidays: Dict[str, str], year: int, month: int) -> bool:
    prefix = month_prefix(year, month)
    return any(k.startswith(prefix) for k in custom_holidays)


# --- export ------------------------------------------------------------------

def build_month_csv(
    grid: List[DayStat], config: CalendarConfig, stats: MonthStats, year: int, month: int
) -> str:
    """
    Build the CSV month report.

    Args:
        grid: Grid for the month
        config: Calendar configuration
        stats: Stats computed from the grid
        year: Year
        month: Month (1-12)

    Returns:
        CSV text with a short report header followed by one row per day
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator='\n')
    writer.writerow([f"Month Report: {get_month_name(month)} {year}"])
    writer.writerow([f"Total Working Days: {stats.total_working_days}"])
    writer.writerow([f"Total Working Hours: {stats.total_working_hours:g}"])
    writer.writerow([])
    writer.writerow(['Date', 'Day', 'Type', 'Holiday Name', 'Note', 'Working Hours'])

    for day in grid:
        if not day.is_current_month:
            continue
        hours = config.hours_per_day if day.day_type == DayType.WORKDAY else 0
        writer.writerow([
            format_date_key(day.date),
            WEEKDAY_ABBR[day.date.weekday()],
            day.day_type.value,
            day.holiday_name or '',
            day.note or '',
            f"{hours:g}",
        ])

    return buf.getvalue()


def export_file_name(year: int, month: int) -> str:
    return f"workday-pro-{year}-{month}.csv"


BACKUP_VERSION = '1.0'


def serialize_overrides(
    config: CalendarConfig, custom_holidays: Dict[str, str], notes: Dict[str, str]
) -> str:
    """
    Serialize config and overrides to JSON for backup.

    Returns:
        JSON string with stable schema
    """
    export_data = {
        'version': BACKUP_VERSION,
        'config': config.to_dict(),
        'custom_holidays': dict(sorted(custom_holidays.items())),
        'notes': dict(sorted(notes.items())),
    }
    return json.dumps(export_data, indent=2)


def deserialize_overrides(json_data: str) -> Dict[str, Any]:
    """
    Deserialize a JSON backup.

    Args:
        json_data: JSON string to deserialize

    Returns:
        Dictionary with config, custom_holidays, notes and version

    Raises:
        ValueError: if the payload is not a valid backup
    """
    try:
        data = json.loads(json_data)
        if not isinstance(data, dict):
            raise ValueError("backup must be a JSON object")

        maps = {}
        for name in ('custom_holidays', 'notes'):
            raw = data.get(name) or {}
            if not isinstance(raw, dict):
                raise ValueError(f"{name} must be an object")
            cleaned = {}
            for key, value in raw.items():
                parse_date_key(key)
                value = _clean(value if isinstance(value, str) else None)
                if value:
                    cleaned[key] = value
            maps[name] = cleaned

        return {
            'config': CalendarConfig.from_dict(data.get('config') or {}),
            'custom_holidays': maps['custom_holidays'],
            'notes': maps['notes'],
            'version': data.get('version', BACKUP_VERSION),
        }
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid JSON format: {e}")


# --- navigation --------------------------------------------------------------

def get_month_name(month: int) -> str:
    """Get full month name from month number."""
    return calendar.month_name[month]


def prev_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1
