import math
from datetime import datetime, timedelta

# Days added after the first upcoming Sunday. 14 puts the deadline at the
# end of the third Sunday from the start of the trial.
TRIAL_EXTRA_DAYS = 14

SECONDS_PER_DAY = 24 * 60 * 60


def days_until_next_sunday(now: datetime) -> int:
    """1..7; a trial started on a Sunday counts from the following Sunday."""
    dow = (now.weekday() + 1) % 7   # 0 = Sunday
    days = (7 - dow) % 7
    return days or 7


def compute_trial_deadline(now: datetime, extra_days: int = TRIAL_EXTRA_DAYS) -> datetime:
    """
    Deadline of a trial starting at `now`: end of day (23:59:59.999) on
    next Sunday + extra_days, in the timezone carried by `now`.
    """
    total_days = days_until_next_sunday(now) + extra_days
    expiry = now + timedelta(days=total_days)
    return expiry.replace(hour=23, minute=59, second=59, microsecond=999000)


def days_remaining(expires_at: datetime, now: datetime) -> int:
    seconds = (expires_at - now).total_seconds()
    return max(0, math.floor(seconds / SECONDS_PER_DAY))
