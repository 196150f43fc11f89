"""
Public holiday suggestions for the dashboard.
Two sources: a Gemini structured-output prompt and the offline `holidays` package.
Results are suggestions only; the caller merges them into the custom holiday map.
"""

import re
from datetime import date
from typing import Any, List, Optional

import google.generativeai as genai
import holidays
from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError, field_validator
from typing_extensions import TypedDict

import calc
from db import get_secret

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

SOURCES = ("gemini", "library")


class HolidayFetchError(Exception):
    """Raised when a holiday source fails or returns unusable data."""


class Holiday(BaseModel):
    date: str
    name: str

    @field_validator("date")
    @classmethod
    def _canonical_date(cls, value: str) -> str:
        return calc.format_date_key(calc.parse_date_key(value.strip()))

    @field_validator("name")
    @classmethod
    def _non_blank_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("holiday name is blank")
        return value


class HolidayEntry(TypedDict):
    date: str
    name: str


_RAW_LIST = TypeAdapter(List[Any])


def build_prompt(country: str, year: int, month: int) -> str:
    month_name = calc.get_month_name(month)
    return (
        f"List all major public holidays for {country} in {month_name} {year}. "
        "Return the specific date in YYYY-MM-DD format and the name of the holiday."
    )


def _get_model(model_name: Optional[str] = None):
    api_key = get_secret("GEMINI_API_KEY")
    if not api_key:
        raise HolidayFetchError("Missing GEMINI_API_KEY.")
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name or get_secret("GEMINI_MODEL", DEFAULT_GEMINI_MODEL))


def _only_month(items: List[Holiday], year: int, month: int) -> List[Holiday]:
    prefix = calc.month_prefix(year, month)
    kept = [h for h in items if h.date.startswith(prefix)]
    if len(kept) != len(items):
        logger.debug(f"Dropped {len(items) - len(kept)} holidays outside {prefix}")
    return kept


def parse_holiday_response(text: Optional[str], year: int, month: int) -> List[Holiday]:
    """
    Validate the JSON text returned by the model.

    Entries with a bad date or a blank name are dropped one by one.

    Args:
        text: Raw response text (a JSON array of {date, name})
        year: Requested year
        month: Requested month (1-12)

    Returns:
        Validated holidays that fall inside the requested month

    Raises:
        HolidayFetchError: if the text is not a JSON array
    """
    if not text:
        return []
    try:
        raw_items = _RAW_LIST.validate_json(text)
    except ValidationError as e:
        raise HolidayFetchError(f"Malformed holiday response: {e}") from e

    items = []
    for raw in raw_items:
        try:
            items.append(Holiday.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed holiday entry {raw!r}: {e.errors()[0]['msg']}")
    return _only_month(items, year, month)


def fetch_public_holidays(country: str, year: int, month: int, model=None) -> List[Holiday]:
    """
    Ask Gemini for the public holidays of a country in one month.

    Args:
        country: Free-text country label (e.g. "INDIA")
        year: Year
        month: Month (1-12)
        model: Optional preconfigured GenerativeModel

    Returns:
        List of Holiday suggestions
    """
    if not country or not country.strip():
        return []

    prompt = build_prompt(country.strip(), year, month)
    try:
        model = model or _get_model()
        response = model.generate_content(
            prompt,
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=list[HolidayEntry],
            ),
        )
        text = response.text
    except HolidayFetchError:
        raise
    except Exception as e:
        logger.error(f"Error fetching holidays from Gemini: {e}")
        raise HolidayFetchError(f"Gemini request failed: {e}") from e

    result = parse_holiday_response(text, year, month)
    logger.info(f"Gemini suggested {len(result)} holidays for {country} {calc.month_prefix(year, month)}")
    return result


def _country_candidates(country: str) -> List[str]:
    country = country.strip()
    candidates = []
    if len(country) <= 3:
        candidates.append(country.upper())
    words = [w for w in re.split(r"[\s_\-]+", country) if w]
    candidates.append("".join(w.capitalize() for w in words))
    candidates.append(country)
    return candidates


def resolve_country_holidays(country: str, year: int):
    """Return a holidays.HolidayBase for a country code or name like 'INDIA'."""
    for candidate in _country_candidates(country):
        try:
            return holidays.country_holidays(candidate, years=year)
        except NotImplementedError:
            continue
    raise HolidayFetchError(f"Country not supported by holidays library: {country!r}")


def library_holidays(country: str, year: int, month: int) -> List[Holiday]:
    """
    Offline holiday suggestions from the `holidays` package.

    Args:
        country: ISO code or English country name
        year: Year
        month: Month (1-12)

    Returns:
        Holidays in the month, sorted by date
    """
    if not country or not country.strip():
        return []

    country_holidays = resolve_country_holidays(country, year)
    result = []
    for day_date, name in sorted(country_holidays.items()):
        if isinstance(day_date, date) and day_date.year == year and day_date.month == month:
            result.append(Holiday(date=calc.format_date_key(day_date), name=name))
    return result


def suggest_holidays(country: str, year: int, month: int, source: str = "gemini") -> List[Holiday]:
    """Dispatch to one of the holiday sources."""
    if source == "gemini":
        return fetch_public_holidays(country, year, month)
    if source == "library":
        return library_holidays(country, year, month)
    raise ValueError(f"Unknown holiday source: {source!r}")
