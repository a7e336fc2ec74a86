"""Time helpers. Event dates are campus-local calendar dates."""
from datetime import date, datetime, timezone

import pytz

from clubhub.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def campus_today() -> date:
    """Today's date in the campus timezone (backend-side conversion, never the client's)."""
    return datetime.now(pytz.timezone(settings.CAMPUS_TIMEZONE)).date()
