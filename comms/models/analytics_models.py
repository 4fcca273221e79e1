"""COMMS — Analytics Output Models.

Flat, JSON-serializable shapes produced by the rollup engine. Fields are
snake_case in Python and camelCase on the wire.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RollupModel(BaseModel):
    """Base for every engine output: camelCase aliases, populate by name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LatestTotal(RollupModel):
    """Sum of one measure at its kind's latest date."""

    total: int = 0


class MetricTotals(RollupModel):
    """Headline numbers for the dashboard cards."""

    total_followers: int = 0
    total_website_users: int = 0
    total_newsletter_recipients: int = 0
    total_posts: int = 0


class CountryRow(RollupModel):
    """Latest-period audience of one country (or the Global row)."""

    country: str
    followers: int = 0
    website_users: int = 0
    newsletter_recipients: int = 0


class PlatformShare(RollupModel):
    """A platform's share of total followers, in percent."""

    platform: str
    name: str = ""
    value: float = 0.0
    color: str = ""


class MonthlyPoint(RollupModel):
    """One calendar-month bucket of a series."""

    month: str  # "Jan 2024"
    value: float = 0.0


class GrowthSummary(RollupModel):
    """Month-over-month change of one measure.

    growth_rate is 0 when the earlier month has no data; baseline_available
    tells that case apart from a genuinely flat month.
    """

    kind: str
    measure: str
    current_period: str
    previous_period: str
    current_value: float = 0.0
    previous_value: float = 0.0
    growth_rate: float = 0.0
    baseline_available: bool = True


class EngagementTrendPoint(RollupModel):
    date: str  # YYYY-MM-DD
    likes: int = 0
    comments: int = 0
    shares: int = 0


class ActivityItem(RollupModel):
    """A recent change shown in the activity feed."""

    id: int
    platform: str
    business_unit: str = ""
    metric: str  # "Followers" | "Engagement"
    value: int = 0
    change: str = "increase"  # "increase" | "decrease"
    date: str  # YYYY-MM-DD


class NewsletterSummary(RollupModel):
    """Latest-period newsletter snapshot.

    open_rate is the stored fraction; open_rate_pct is the same value in
    percent for display.
    """

    recipients: int = 0
    number_of_emails: int = 0
    open_rate: Optional[float] = None
    open_rate_pct: Optional[float] = None


class DashboardOverview(RollupModel):
    """Everything the landing page needs in one payload."""

    generated_at: str = ""
    totals: MetricTotals = MetricTotals()
    country_distribution: List[CountryRow] = []
    platform_breakdown: List[PlatformShare] = []
    follower_growth: Optional[GrowthSummary] = None
    newsletter: NewsletterSummary = NewsletterSummary()
