"""COMMS — Analytics API Routes."""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from comms.database import get_session
from comms.core.metric_registry import (
    BusinessUnit,
    MetricKind,
    Platform,
    get_measure,
)
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
from comms.analyzer import pipeline
from comms.storage.metrics_store import MetricStoreError
from comms.core.logging import get_logger

logger = get_logger("api.analytics")

router = APIRouter(prefix="/analytics", tags=["Analytics"])


def _resolve_measure(kind: MetricKind, measure: str) -> str:
    if get_measure(kind, measure) is None:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown measure '{measure}' for {kind.value} metrics",
        )
    return measure


def _dimensions(**values) -> dict:
    return {name: value for name, value in values.items() if value is not None}


def _failed(what: str, e: Exception) -> HTTPException:
    if isinstance(e, MetricStoreError):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"{what} failed: {e}", extra={"endpoint": what})
    return HTTPException(status_code=500, detail=f"Failed to fetch {what}")


@router.get("/total-metrics", response_model=MetricTotals)
async def get_total_metrics(session: Session = Depends(get_session)):
    """Followers, posts, website users and newsletter recipients at the latest period."""
    try:
        return pipeline.total_metrics(session)
    except Exception as e:
        raise _failed("total metrics", e)


@router.get("/country-distribution", response_model=List[CountryRow])
async def get_country_distribution(session: Session = Depends(get_session)):
    """Latest-period audience per country, led by a Global row."""
    try:
        return pipeline.country_distribution(session)
    except Exception as e:
        raise _failed("country distribution", e)


@router.get("/platform-breakdown", response_model=List[PlatformShare])
async def get_platform_breakdown(session: Session = Depends(get_session)):
    try:
        return pipeline.platform_breakdown(session)
    except Exception as e:
        raise _failed("platform breakdown", e)


@router.get("/growth", response_model=GrowthSummary)
async def get_growth(
    kind: MetricKind = Query(MetricKind.SOCIAL),
    measure: str = Query("followers"),
    business_unit: Optional[BusinessUnit] = None,
    platform: Optional[Platform] = None,
    country: Optional[str] = None,
    session: Session = Depends(get_session),
):
    """Last calendar month vs. the month before it."""
    measure = _resolve_measure(kind, measure)
    try:
        return pipeline.growth(
            session,
            kind,
            measure,
            **_dimensions(business_unit=business_unit, platform=platform, country=country),
        )
    except Exception as e:
        raise _failed("growth", e)


@router.get("/monthly", response_model=List[MonthlyPoint])
async def get_monthly_series(
    kind: MetricKind = Query(MetricKind.SOCIAL),
    measure: str = Query("followers"),
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    business_unit: Optional[BusinessUnit] = None,
    platform: Optional[Platform] = None,
    country: Optional[str] = None,
    session: Session = Depends(get_session),
):
    """Measure summed per calendar month; months without data are absent."""
    measure = _resolve_measure(kind, measure)
    try:
        return pipeline.monthly_series(
            session,
            kind,
            measure,
            start_date=start_date,
            end_date=end_date,
            **_dimensions(business_unit=business_unit, platform=platform, country=country),
        )
    except Exception as e:
        raise _failed("monthly series", e)


@router.get("/engagement-trends", response_model=List[EngagementTrendPoint])
async def get_engagement_trends(
    start_date: dt.date = Query(..., description="Inclusive, YYYY-MM-DD"),
    end_date: dt.date = Query(..., description="Inclusive, YYYY-MM-DD"),
    business_unit: Optional[BusinessUnit] = None,
    platform: Optional[Platform] = None,
    session: Session = Depends(get_session),
):
    try:
        return pipeline.engagement_trends(
            session,
            start_date=start_date,
            end_date=end_date,
            **_dimensions(business_unit=business_unit, platform=platform),
        )
    except Exception as e:
        raise _failed("engagement trends", e)


@router.get("/recent-activity", response_model=List[ActivityItem])
async def get_recent_activity(
    limit: Optional[int] = Query(None, ge=1, le=50),
    session: Session = Depends(get_session),
):
    try:
        return pipeline.recent_activity(session, limit=limit)
    except Exception as e:
        raise _failed("recent activity", e)


@router.get("/overview", response_model=DashboardOverview)
async def get_overview(session: Session = Depends(get_session)):
    """Everything the landing page renders, in one call."""
    try:
        return pipeline.build_overview(session)
    except Exception as e:
        raise _failed("overview", e)
