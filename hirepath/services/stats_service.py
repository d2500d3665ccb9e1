"""
Stats Service - per-user application counters and KPI progress.

The counters on the user document are a cache. They are always recomputed
from the job_applications collection (never incremented), so a missed or
racing update heals itself on the next recompute.
"""

import logging
from datetime import datetime
from typing import Optional

from pymongo.collection import Collection

from hirepath.core.errors import NotFound
from hirepath.db.mongodb import get_collection, COLLECTIONS
from hirepath.services.user_service import (
    UserService, default_kpi_settings, public_user, to_object_id
)
from hirepath.utils.timeutils import period_starts, utcnow

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
# Monthly target uses a flat 30 days, not the calendar month length
DAYS_PER_MONTH = 30


def progress_percentage(current: int, target: int) -> float:
    """min(100, current / target * 100); a non-positive target counts as 0%."""
    if target <= 0:
        return 0.0
    return min(100.0, current * 100 / target)


def build_progress(stats: dict, daily_target: int) -> dict:
    """Daily / weekly / monthly progress against the user's daily target."""
    horizons = {
        "daily": (stats.get("applicationsToday", 0), daily_target),
        "weekly": (stats.get("applicationsThisWeek", 0), daily_target * DAYS_PER_WEEK),
        "monthly": (stats.get("applicationsThisMonth", 0), daily_target * DAYS_PER_MONTH),
    }
    return {
        name: {
            "current": current,
            "target": target,
            "percentage": progress_percentage(current, target),
        }
        for name, (current, target) in horizons.items()
    }


class StatsService:
    """
    Recomputes and reports application statistics for one user at a time.
    """

    def __init__(self):
        self.applications: Collection = get_collection(COLLECTIONS["applications"])
        self.user_service = UserService()

    def count_applications(self, owner_id, now: Optional[datetime] = None) -> dict:
        """
        Count the owner's applications per period.

        Returns:
            {"totalApplications": n, "applicationsThisMonth": n,
             "applicationsThisWeek": n, "applicationsToday": n}
        """
        owner = to_object_id(owner_id)
        today, start_of_week, start_of_month = period_starts(now)

        def count_since(start: datetime) -> int:
            return self.applications.count_documents(
                {"user": owner, "applicationDate": {"$gte": start}}
            )

        return {
            "totalApplications": self.applications.count_documents({"user": owner}),
            "applicationsThisMonth": count_since(start_of_month),
            "applicationsThisWeek": count_since(start_of_week),
            "applicationsToday": count_since(today),
        }

    def recompute(self, owner_id, is_new_application: bool = False, now: Optional[datetime] = None) -> Optional[dict]:
        """
        Full recount written back to User.stats.

        Args:
            owner_id: user whose stats to refresh
            is_new_application: also stamp stats.lastApplicationDate with the current time

        Returns:
            Updated user document, or None if the user no longer exists
        """
        owner = to_object_id(owner_id)
        counts = self.count_applications(owner, now=now)
        last_date = utcnow() if is_new_application else None

        user = self.user_service.set_stats(owner, counts, last_application_date=last_date)
        if user is None:
            logger.warning("Stats recompute skipped, user %s not found", owner_id)
        else:
            logger.debug("Stats recomputed for user %s: %s", owner_id, counts)
        return user

    def get_progress(self, owner_id) -> dict:
        """Progress from the cached stats, without recomputing."""
        user = self.user_service.get_by_id(owner_id)
        if user is None:
            raise NotFound("User not found")
        view = public_user(user)
        return build_progress(view["stats"], view["kpiSettings"]["dailyTarget"])

    def get_stats_summary(self, owner_id) -> dict:
        """
        Recompute, then report stats, KPI settings and progress.

        Reading stats heals a stale cache left by an interrupted mutation.
        """
        user = self.recompute(owner_id)
        if user is None:
            raise NotFound("User not found")
        view = public_user(user)
        kpi = view["kpiSettings"] or default_kpi_settings()
        return {
            "stats": view["stats"],
            "kpiSettings": kpi,
            "progress": build_progress(view["stats"], kpi["dailyTarget"]),
        }


def get_stats_service() -> StatsService:
    """Get stats service instance."""
    return StatsService()
