"""
Map capture timestamps to date folder keys.

The key only depends on the calendar fields of the timestamp as the camera
wrote them. Time zones are never converted, so the same capture instant
lands in the same folder no matter where the run happens.
"""

from datetime import date, datetime
from typing import Union

from .types import Granularity


def classify(timestamp: Union[datetime, date], granularity: Granularity) -> str:
    """
    Get the folder key for a capture timestamp.

    Args:
        timestamp: Capture timestamp (naive or aware; used as-is)
        granularity: Day or month bucketing

    Returns:
        ``YYYYMMDD`` for day granularity, ``YYYYMM`` for month

    Raises:
        ValueError: If the granularity is unknown
    """
    granularity = Granularity(granularity)
    # strftime("%Y") does not pad years before 1000 on every platform
    key = f"{timestamp.year:04d}{timestamp.month:02d}"
    if granularity == Granularity.DAY:
        key += f"{timestamp.day:02d}"
    return key
