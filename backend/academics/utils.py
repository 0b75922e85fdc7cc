from math import ceil
from typing import Optional, Tuple


def parse_roll_number(roll_number) -> Optional[int]:
    """Roll number as an int, or None when it is not a plain decimal number."""
    value = (roll_number or '').strip()
    # isdigit() also accepts superscripts and other digits int() rejects
    if not value.isdecimal():
        return None
    return int(value)


def roll_sort_key(roll_number) -> Tuple[int, int, str]:
    """Sort key putting numeric roll numbers first, in numeric order.

    Non-numeric roll numbers follow, ordered as plain strings.
    """
    value = (roll_number or '').strip()
    number = parse_roll_number(value)
    if number is not None:
        return (0, number, value)
    return (1, 0, value)


def page_bounds(page, limit, default_limit=20) -> Tuple[int, int, int]:
    """Return (page, limit, offset) with page >= 1 and limit >= 1."""
    page = max(int(page or 1), 1)
    limit = max(int(limit or default_limit), 1)
    return page, limit, (page - 1) * limit


def pagination_meta(total, page, limit) -> dict:
    return {
        'total': total,
        'page': page,
        'limit': limit,
        'pages': ceil(total / limit) if total else 0,
    }
