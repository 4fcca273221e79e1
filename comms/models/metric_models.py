"""COMMS — Metric Record Models.

Tables for the four record kinds plus the write payloads accepted by the
API. Every table carries a UNIQUE constraint on its logical key so the
store can upsert with a single INSERT ... ON CONFLICT statement.

Rates (open_rate, engagement_rate) are always fractions in [0, 1].
"""

import datetime as dt
from datetime import datetime, timezone
from typing import Optional

from pydantic import field_validator
from sqlmodel import SQLModel, Field, UniqueConstraint

from comms.core.metric_registry import (
    BusinessUnit,
    MetricKind,
    Platform,
    GLOBAL_COUNTRY,
    SOCIAL_PLATFORMS,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────
# SOCIAL
# ─────────────────────────────────────────────


class SocialMetricBase(SQLModel):
    platform: Platform = Field(index=True)
    business_unit: BusinessUnit = Field(index=True)
    country: str = Field(default=GLOBAL_COUNTRY, index=True, max_length=16)
    date: dt.date = Field(index=True, description="Reporting period start")
    impressions: Optional[int] = Field(default=None, ge=0)
    followers: Optional[int] = Field(default=None, ge=0)
    number_of_posts: Optional[int] = Field(default=None, ge=0)


class SocialMetric(SocialMetricBase, table=True):
    """Followers / impressions / posts per platform, business unit and country."""

    __tablename__ = "social_metrics"
    __table_args__ = (
        UniqueConstraint(
            "platform", "business_unit", "country", "date", name="uq_social_metric"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SocialMetricCreate(SocialMetricBase):
    pass


class SocialMetricUpdate(SQLModel):
    platform: Optional[Platform] = None
    business_unit: Optional[BusinessUnit] = None
    country: Optional[str] = None
    date: Optional[dt.date] = None
    impressions: Optional[int] = Field(default=None, ge=0)
    followers: Optional[int] = Field(default=None, ge=0)
    number_of_posts: Optional[int] = Field(default=None, ge=0)


# ─────────────────────────────────────────────
# WEBSITE
# ─────────────────────────────────────────────


class WebsiteMetricBase(SQLModel):
    business_unit: BusinessUnit = Field(index=True)
    country: str = Field(default=GLOBAL_COUNTRY, index=True, max_length=16)
    date: dt.date = Field(index=True, description="Reporting period start")
    users: Optional[int] = Field(default=None, ge=0)
    clicks: Optional[int] = Field(default=None, ge=0)
    sessions: Optional[int] = Field(default=None, ge=0)


class WebsiteMetric(WebsiteMetricBase, table=True):
    __tablename__ = "website_metrics"
    __table_args__ = (
        UniqueConstraint("business_unit", "country", "date", name="uq_website_metric"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class WebsiteMetricCreate(WebsiteMetricBase):
    pass


class WebsiteMetricUpdate(SQLModel):
    business_unit: Optional[BusinessUnit] = None
    country: Optional[str] = None
    date: Optional[dt.date] = None
    users: Optional[int] = Field(default=None, ge=0)
    clicks: Optional[int] = Field(default=None, ge=0)
    sessions: Optional[int] = Field(default=None, ge=0)


# ─────────────────────────────────────────────
# NEWSLETTER
# ─────────────────────────────────────────────


class NewsletterMetricBase(SQLModel):
    business_unit: BusinessUnit = Field(index=True)
    country: str = Field(default=GLOBAL_COUNTRY, index=True, max_length=16)
    date: dt.date = Field(index=True, description="Reporting period start")
    recipients: Optional[int] = Field(default=None, ge=0)
    open_rate: Optional[float] = Field(
        default=None, ge=0, le=1, description="Fraction, 0.25 == 25%"
    )
    number_of_emails: Optional[int] = Field(default=None, ge=0)


class NewsletterMetric(NewsletterMetricBase, table=True):
    __tablename__ = "newsletter_metrics"
    __table_args__ = (
        UniqueConstraint(
            "business_unit", "country", "date", name="uq_newsletter_metric"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class NewsletterMetricCreate(NewsletterMetricBase):
    pass


class NewsletterMetricUpdate(SQLModel):
    business_unit: Optional[BusinessUnit] = None
    country: Optional[str] = None
    date: Optional[dt.date] = None
    recipients: Optional[int] = Field(default=None, ge=0)
    open_rate: Optional[float] = Field(default=None, ge=0, le=1)
    number_of_emails: Optional[int] = Field(default=None, ge=0)


# ─────────────────────────────────────────────
# SOCIAL ENGAGEMENT
# ─────────────────────────────────────────────


class SocialEngagementMetricBase(SQLModel):
    platform: Platform = Field(index=True)
    business_unit: BusinessUnit = Field(index=True)
    date: dt.date = Field(index=True, description="Reporting period start")
    likes: Optional[int] = Field(default=None, ge=0)
    comments: Optional[int] = Field(default=None, ge=0)
    shares: Optional[int] = Field(default=None, ge=0)
    saves: Optional[int] = Field(default=None, ge=0)
    clicks: Optional[int] = Field(default=None, ge=0)
    engagement_rate: Optional[float] = Field(default=None, ge=0, le=1)


class SocialEngagementMetric(SocialEngagementMetricBase, table=True):
    __tablename__ = "social_engagement_metrics"
    __table_args__ = (
        UniqueConstraint(
            "platform", "business_unit", "date", name="uq_social_engagement_metric"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


def _check_social_platform(value: Optional[Platform]) -> Optional[Platform]:
    if value is not None and value not in SOCIAL_PLATFORMS:
        raise ValueError(f"engagement is not tracked for {value.value}")
    return value


class SocialEngagementMetricCreate(SocialEngagementMetricBase):
    @field_validator("platform")
    @classmethod
    def _social_platforms_only(cls, value: Platform) -> Platform:
        return _check_social_platform(value)


class SocialEngagementMetricUpdate(SQLModel):
    platform: Optional[Platform] = None
    business_unit: Optional[BusinessUnit] = None
    date: Optional[dt.date] = None
    likes: Optional[int] = Field(default=None, ge=0)
    comments: Optional[int] = Field(default=None, ge=0)
    shares: Optional[int] = Field(default=None, ge=0)
    saves: Optional[int] = Field(default=None, ge=0)
    clicks: Optional[int] = Field(default=None, ge=0)
    engagement_rate: Optional[float] = Field(default=None, ge=0, le=1)

    @field_validator("platform")
    @classmethod
    def _social_platforms_only(cls, value: Optional[Platform]) -> Optional[Platform]:
        return _check_social_platform(value)


# ─────────────────────────────────────────────
# KIND → MODELS
# ─────────────────────────────────────────────

# (table, create payload, update payload) per kind
KIND_MODELS = {
    MetricKind.SOCIAL: (SocialMetric, SocialMetricCreate, SocialMetricUpdate),
    MetricKind.WEBSITE: (WebsiteMetric, WebsiteMetricCreate, WebsiteMetricUpdate),
    MetricKind.NEWSLETTER: (
        NewsletterMetric,
        NewsletterMetricCreate,
        NewsletterMetricUpdate,
    ),
    MetricKind.ENGAGEMENT: (
        SocialEngagementMetric,
        SocialEngagementMetricCreate,
        SocialEngagementMetricUpdate,
    ),
}
