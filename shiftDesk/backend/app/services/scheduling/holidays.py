"""
Italian national holidays, blocked out in generation prompts.
"""

from datetime import date, timedelta

FIXED_HOLIDAYS = {
    (1, 1): "New Year's Day",
    (1, 6): "Epiphany",
    (4, 25): "Liberation Day",
    (5, 1): "Labour Day",
    (6, 2): "Republic Day",
    (8, 15): "Ferragosto",
    (11, 1): "All Saints' Day",
    (12, 8): "Immaculate Conception",
    (12, 25): "Christmas",
    (12, 26): "Santo Stefano",
}


def easter_sunday(year: int) -> date:
    """Gregorian Easter (anonymous Gregorian algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def italian_holidays(start: date, end: date) -> dict[date, str]:
    """Holidays between start and end (inclusive), across year boundaries."""
    found = {}
    for year in range(start.year, end.year + 1):
        candidates = {date(year, m, d): name for (m, d), name in FIXED_HOLIDAYS.items()}
        candidates[easter_sunday(year) + timedelta(days=1)] = "Easter Monday"
        for day, name in candidates.items():
            if start <= day <= end:
                found[day] = name
    return dict(sorted(found.items()))
