"""
Shared test helpers.
"""
from datetime import datetime, timedelta, timezone as dt_timezone

# A fixed day far enough ahead to be "upcoming" for the portal.
BASE_DAY = datetime(2030, 1, 15, tzinfo=dt_timezone.utc)


def at(hour, minute=0, days=0):
    """Aware datetime on BASE_DAY (+ ``days``) at ``hour:minute`` UTC."""
    return BASE_DAY + timedelta(days=days, hours=hour, minutes=minute)
