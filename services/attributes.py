"""Normalize user-supplied record fields into prompt attributes."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from models.coffee_record import CoffeeRecord, NormalizedAttributes

LOGGER = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


_DAY_FIRST_FORMATS = ("%d.%m.%Y", "%d/%m/%Y")


def parse_birthdate(raw: Optional[str]) -> Optional[date]:
    """Parse a birthdate string; None when missing or unparseable.

    Accepts a full ISO date or datetime (a trailing `Z` is read as UTC) and
    day-first `DD.MM.YYYY` / `DD/MM/YYYY`. A datetime keeps the calendar
    date it was written with, whatever its offset.
    """
    text = _clean(raw)
    if text is None:
        return None
    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(iso_text).date()
    except ValueError:
        pass
    for fmt in _DAY_FIRST_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    LOGGER.warning("Could not parse birthdate %r; age will be omitted", raw)
    return None


def calculate_age(birthdate: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Return the calendar age for `birthdate` as of `today`.

    The age drops by one when today's (month, day) comes before the birthday's.
    Returns None when the birthdate is missing or cannot be parsed.
    """
    born = parse_birthdate(birthdate)
    if born is None:
        return None
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def normalize_attributes(record: CoffeeRecord, today: Optional[date] = None) -> NormalizedAttributes:
    """Build the attribute set used for prompt composition.

    Blank strings become None and ages that are not positive are dropped.
    """
    age = calculate_age(record.user_birthday, today=today)
    attributes = NormalizedAttributes(
        name=_clean(record.user_name),
        age=age if age is not None and age > 0 else None,
        relation_status=_clean(record.user_relation_status),
        employment_status=_clean(record.user_employment_status),
    )
    LOGGER.debug("Normalized attributes for record %s: %s", record.id, attributes)
    return attributes
