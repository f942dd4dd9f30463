import re
from datetime import date

from django.utils.dateparse import parse_date

ASCII_DIGITS = re.compile(r"[0-9]+")


def parse_positive_int(value, default):
    """
    Lenient int parsing for query params: anything that is not a positive
    integer falls back to `default`.
    """
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def parse_date_param(value) -> date | None:
    """
    Parses 'YYYY-MM-DD' (a trailing time part is ignored). Invalid input -> None.
    """
    if not value:
        return None
    try:
        return parse_date(str(value).strip()[:10])
    except ValueError:
        return None


def parse_bool_param(value) -> bool:
    return str(value).strip().lower() in ("true", "1", "yes")


def build_ordering(sort_by, sort_order, allowed, default, default_direction="ASC"):
    """
    Translates sortBy/sortOrder query params into an order_by() list.

    Unknown `sort_by` values fall back to `default`. The direction only flips
    away from `default_direction` on an explicit ASC/DESC.
    """
    if sort_by not in allowed:
        return [default, "-pk"]

    direction = (sort_order or default_direction).strip().upper()
    if default_direction == "ASC":
        descending = direction == "DESC"
    else:
        descending = direction != "ASC"
    return [f"-{sort_by}" if descending else sort_by, "-pk"]


def coerce_positive_int(value):
    """
    Strict variant for request bodies: accepts ints and digit strings only.
    Returns None for anything else (floats, bools, negatives, zero).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and ASCII_DIGITS.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        return None
    return number if number > 0 else None
