"""COMMS — Dashboard Pipeline.

Loads record lists through the metrics store and runs the rollup engine.
Every function is request-scoped: it reads, aggregates and returns, with
no state kept between calls.
"""

import datetime as dt
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session

from comms.config import settings
from comms.core.metric_registry import MetricKind
from comms.models.analytics_models import (
    ActivityItem,
    CountryRow,
    DashboardOverview,
    EngagementTrendPoint,
    GrowthSummary,
    MetricTotals,
    MonthlyPoint,
    PlatformShare,
)
from comms.analyzer import rollup_engine as rollup
from comms.storage import metrics_store as store
from comms.core.logging import get_logger

logger = get_logger("analyzer.pipeline")


def total_metrics(session: Session) -> MetricTotals:
    return rollup.dashboard_totals(
        store.find_at_latest_date(session, MetricKind.SOCIAL),
        store.find_at_latest_date(session, MetricKind.WEBSITE),
        store.find_at_latest_date(session, MetricKind.NEWSLETTER),
    )


def country_distribution(session: Session) -> List[CountryRow]:
    return rollup.country_distribution(
        store.find_at_latest_date(session, MetricKind.SOCIAL),
        store.find_at_latest_date(session, MetricKind.WEBSITE),
        store.find_at_latest_date(session, MetricKind.NEWSLETTER),
    )


def platform_breakdown(session: Session) -> List[PlatformShare]:
    """Follower share per platform at the latest social date."""
    return rollup.platform_breakdown(
        store.find_at_latest_date(session, MetricKind.SOCIAL)
    )


def growth(
    session: Session,
    kind: MetricKind,
    measure: str,
    now: Optional[datetime] = None,
    **dimensions,
) -> GrowthSummary:
    """Month-over-month growth of a measure, windows taken relative to `now`."""
    now = now or datetime.now(timezone.utc)
    current_window, previous_window = rollup.month_over_month_windows(now)
    records = store.find_by_dimensions_and_date_range(
        session,
        kind,
        start_date=previous_window[0],
        end_date=current_window[1],
        **dimensions,
    )
    return rollup.growth_summary(records, kind, measure, now)


def monthly_series(
    session: Session,
    kind: MetricKind,
    measure: str,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    **dimensions,
) -> List[MonthlyPoint]:
    records = store.find_by_dimensions_and_date_range(
        session, kind, start_date=start_date, end_date=end_date, **dimensions
    )
    return rollup.monthly_bucket(records, measure)


def engagement_trends(
    session: Session,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    **dimensions,
) -> List[EngagementTrendPoint]:
    records = store.find_by_dimensions_and_date_range(
        session,
        MetricKind.ENGAGEMENT,
        start_date=start_date,
        end_date=end_date,
        **dimensions,
    )
    return rollup.engagement_trends(records)


def recent_activity(
    session: Session, limit: Optional[int] = None
) -> List[ActivityItem]:
    """Newest activity; only the rows the feed can show are loaded.

    Follower history is fetched for the comparison window before the
    oldest selected entry, so the query stays bounded as data grows.
    """
    limit = limit or settings.recent_activity_limit
    window_days = settings.recent_activity_window_days
    social = store.find_most_recent(session, MetricKind.SOCIAL, limit)
    history: List = []
    if social:
        history = store.find_by_dimensions_and_date_range(
            session,
            MetricKind.SOCIAL,
            start_date=min(r.date for r in social) - dt.timedelta(days=window_days),
            end_date=max(r.date for r in social) - dt.timedelta(days=1),
        )
    return rollup.recent_activity(
        social,
        store.find_most_recent(session, MetricKind.ENGAGEMENT, limit),
        limit=limit,
        window_days=window_days,
        social_history=history,
    )


def build_overview(
    session: Session, now: Optional[datetime] = None
) -> DashboardOverview:
    """Totals, country distribution, platform share, follower growth and newsletter."""
    now = now or datetime.now(timezone.utc)
    social = store.find_at_latest_date(session, MetricKind.SOCIAL)
    website = store.find_at_latest_date(session, MetricKind.WEBSITE)
    newsletter = store.find_at_latest_date(session, MetricKind.NEWSLETTER)

    overview = DashboardOverview(
        generated_at=now.isoformat(),
        totals=rollup.dashboard_totals(social, website, newsletter),
        country_distribution=rollup.country_distribution(social, website, newsletter),
        platform_breakdown=rollup.platform_breakdown(social),
        follower_growth=growth(session, MetricKind.SOCIAL, "followers", now),
        newsletter=rollup.newsletter_summary(newsletter),
    )
    logger.info(
        f"Overview built: {overview.totals.total_followers} followers, "
        f"{len(overview.country_distribution) - 1} countries"
    )
    return overview
