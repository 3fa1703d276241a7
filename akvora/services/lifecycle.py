from datetime import timedelta
from akvora.models.enums import LifecycleStatus
from akvora.utils.dates import as_utc

# Events without an end date are considered finished a day after they start
DEFAULT_EVENT_LENGTH = timedelta(hours=24)


def lifecycle_status(now, start_date, end_date=None) -> LifecycleStatus:
    """
    Classifies an event relative to ``now``.

    ``start <= now < end`` is ongoing; reaching the end instant completes the
    event. Naive datetimes are read as UTC.
    """
    if not start_date:
        return LifecycleStatus.UPCOMING

    now = as_utc(now)
    start = as_utc(start_date)
    end = as_utc(end_date) if end_date else start + DEFAULT_EVENT_LENGTH

    if now < start:
        return LifecycleStatus.UPCOMING
    if now >= end:
        return LifecycleStatus.COMPLETED
    return LifecycleStatus.ONGOING
