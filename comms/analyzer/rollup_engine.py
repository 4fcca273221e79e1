"""COMMS — Rollup Engine.

Pure aggregation over lists of metric records: latest-period totals,
country distribution, month-over-month growth, platform share, monthly
series, engagement trends and the recent-activity feed.

Records can be ORM rows, pydantic models or plain dicts. Fields are read
through accessors (a field name or a callable). Missing data never
raises: empty input yields zeros / empty lists and null measures count
as 0 when summed.
"""

import datetime as dt
from collections import defaultdict
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from comms.config import settings
from comms.core.metric_registry import (
    GLOBAL_COUNTRY,
    GLOBAL_ROW_LABEL,
    PLATFORM_COLORS,
    PLATFORM_DISPLAY_NAMES,
    MetricKind,
    MetricType,
    get_measure,
)
from comms.models.analytics_models import (
    ActivityItem,
    CountryRow,
    EngagementTrendPoint,
    GrowthSummary,
    LatestTotal,
    MetricTotals,
    MonthlyPoint,
    NewsletterSummary,
    PlatformShare,
)
from comms.core.logging import get_logger

logger = get_logger("analyzer.rollup")

Accessor = Union[str, Callable[[Any], Any]]
Window = Tuple[dt.date, dt.date]

_MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip


# ─────────────────────────────────────────────
# FIELD ACCESS
# ─────────────────────────────────────────────


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _getter(accessor: Accessor) -> Callable[[Any], Any]:
    if callable(accessor):
        return accessor
    return lambda record: _field(record, accessor)


def _as_date(value: Any) -> Optional[dt.date]:
    """Calendar date of a date, datetime or ISO string, as written (no tz shift)."""
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and value:
        return dt.date.fromisoformat(value[:10])
    return None


def _number(value: Any) -> float | int:
    """Null measures count as 0 when aggregating."""
    return value if value is not None else 0


def _label(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return "" if value is None else str(value)


def _month_label(year: int, month: int) -> str:
    return f"{_MONTH_ABBR[month - 1]} {year}"


# ─────────────────────────────────────────────
# LATEST PERIOD
# ─────────────────────────────────────────────


def latest_date(
    records: Iterable[Any], date_accessor: Accessor = "date"
) -> Optional[dt.date]:
    """Most recent date present, or None for empty input."""
    get_date = _getter(date_accessor)
    dates = [d for d in (_as_date(get_date(r)) for r in records) if d is not None]
    return max(dates) if dates else None


def sum_measure_at_latest_date(
    records: Iterable[Any],
    date_accessor: Accessor = "date",
    measure_accessor: Accessor = "followers",
) -> float | int:
    """Sum a measure over the records that share the latest date."""
    records = list(records)
    latest = latest_date(records, date_accessor)
    if latest is None:
        return 0
    get_date = _getter(date_accessor)
    get_measure = _getter(measure_accessor)
    return sum(
        _number(get_measure(r)) for r in records if _as_date(get_date(r)) == latest
    )


def latest_period_totals(records: Iterable[Any], measure: Accessor) -> LatestTotal:
    """Total of one measure at the latest period of a record kind."""
    return LatestTotal(total=int(sum_measure_at_latest_date(records, "date", measure)))


def dashboard_totals(
    social_records: Iterable[Any],
    website_records: Iterable[Any],
    newsletter_records: Iterable[Any],
) -> MetricTotals:
    """Headline totals, each taken at its own kind's latest date."""
    social_records = list(social_records)
    return MetricTotals(
        total_followers=latest_period_totals(social_records, "followers").total,
        total_posts=latest_period_totals(social_records, "number_of_posts").total,
        total_website_users=latest_period_totals(website_records, "users").total,
        total_newsletter_recipients=latest_period_totals(
            newsletter_records, "recipients"
        ).total,
    )


# ─────────────────────────────────────────────
# COUNTRY DISTRIBUTION
# ─────────────────────────────────────────────


def _latest_by_country(
    records: Iterable[Any], measure: str
) -> Tuple[dict[str, int], int]:
    """(per-country sums without GLOBAL, sum over every row) at the latest date."""
    records = list(records)
    latest = latest_date(records)
    by_country: dict[str, int] = {}
    total = 0
    if latest is None:
        return by_country, total

    for r in records:
        if _as_date(_field(r, "date")) != latest:
            continue
        value = _number(_field(r, measure))
        total += value
        country = _label(_field(r, "country")) or GLOBAL_COUNTRY
        if country == GLOBAL_COUNTRY:
            continue
        by_country[country] = by_country.get(country, 0) + value
    return by_country, total


def country_distribution(
    social_records: Iterable[Any],
    website_records: Iterable[Any],
    newsletter_records: Iterable[Any],
) -> List[CountryRow]:
    """Latest-period followers, website users and newsletter recipients per country.

    The first row is the Global row, summed over every latest-date record
    regardless of country. Country rows follow in order of first appearance
    (social, then website, then newsletter).
    """
    followers, total_followers = _latest_by_country(social_records, "followers")
    users, total_users = _latest_by_country(website_records, "users")
    recipients, total_recipients = _latest_by_country(newsletter_records, "recipients")

    countries: List[str] = []
    for source in (followers, users, recipients):
        for country in source:
            if country not in countries:
                countries.append(country)

    rows = [
        CountryRow(
            country=GLOBAL_ROW_LABEL,
            followers=total_followers,
            website_users=total_users,
            newsletter_recipients=total_recipients,
        )
    ]
    rows.extend(
        CountryRow(
            country=c,
            followers=followers.get(c, 0),
            website_users=users.get(c, 0),
            newsletter_recipients=recipients.get(c, 0),
        )
        for c in countries
    )
    logger.debug(f"Country distribution over {len(countries)} countries")
    return rows


# ─────────────────────────────────────────────
# GROWTH
# ─────────────────────────────────────────────


def growth_rate(current: Optional[float], previous: Optional[float]) -> float:
    """Percent change; 0 when there is no previous baseline."""
    if not previous:
        return 0.0
    return (_number(current) - previous) / previous * 100


def month_over_month_windows(now: dt.date | dt.datetime) -> Tuple[Window, Window]:
    """(previous calendar month, month before it) relative to `now`."""
    today = _as_date(now)
    previous_end = today.replace(day=1) - dt.timedelta(days=1)
    previous_start = previous_end.replace(day=1)
    before_end = previous_start - dt.timedelta(days=1)
    before_start = before_end.replace(day=1)
    return (previous_start, previous_end), (before_start, before_end)


def period_value(
    records: Iterable[Any],
    measure: str,
    metric_type: MetricType,
    window: Window,
) -> float:
    """Value of a measure over a date window.

    Audience measures are snapshots (latest date in the window), volume
    measures are summed and rates are averaged over non-null values.
    """
    start, end = window
    in_window = []
    for r in records:
        d = _as_date(_field(r, "date"))
        if d is not None and start <= d <= end:
            in_window.append(r)
    if metric_type == MetricType.AUDIENCE:
        return sum_measure_at_latest_date(in_window, "date", measure)
    if metric_type == MetricType.RATE:
        values = [v for v in (_field(r, measure) for r in in_window) if v is not None]
        return sum(values) / len(values) if values else 0.0
    return sum(_number(_field(r, measure)) for r in in_window)


def growth_summary(
    records: Iterable[Any],
    kind: MetricKind,
    measure: str,
    now: Optional[dt.date | dt.datetime] = None,
) -> GrowthSummary:
    """Previous calendar month vs. the month before it, measured from `now`."""
    records = list(records)
    now = now or dt.datetime.now(dt.timezone.utc)
    definition = get_measure(kind, measure)
    metric_type = definition.metric_type if definition else MetricType.VOLUME

    current_window, previous_window = month_over_month_windows(now)
    current = period_value(records, measure, metric_type, current_window)
    previous = period_value(records, measure, metric_type, previous_window)

    return GrowthSummary(
        kind=kind.value,
        measure=measure,
        current_period=_month_label(current_window[0].year, current_window[0].month),
        previous_period=_month_label(
            previous_window[0].year, previous_window[0].month
        ),
        current_value=current,
        previous_value=previous,
        growth_rate=round(growth_rate(current, previous), 2),
        baseline_available=bool(previous),
    )


# ─────────────────────────────────────────────
# PLATFORM BREAKDOWN
# ─────────────────────────────────────────────


def platform_breakdown(
    social_records: Iterable[Any], default_color: Optional[str] = None
) -> List[PlatformShare]:
    """Each platform's share of followers in percent (0 everywhere when no followers)."""
    default_color = default_color or settings.default_color
    sums: dict[str, int] = {}
    for r in social_records:
        platform = _label(_field(r, "platform"))
        sums[platform] = sums.get(platform, 0) + _number(_field(r, "followers"))

    grand_total = sum(sums.values())
    return [
        PlatformShare(
            platform=platform,
            name=PLATFORM_DISPLAY_NAMES.get(platform, platform.title()),
            value=(value / grand_total * 100) if grand_total else 0.0,
            color=PLATFORM_COLORS.get(platform, default_color),
        )
        for platform, value in sums.items()
    ]


# ─────────────────────────────────────────────
# TIME SERIES
# ─────────────────────────────────────────────


def monthly_bucket(
    records: Iterable[Any],
    measure_accessor: Accessor,
    date_accessor: Accessor = "date",
) -> List[MonthlyPoint]:
    """Sum a measure per calendar month, ascending.

    Only months that have records appear; gaps are not zero-filled.
    """
    get_date = _getter(date_accessor)
    get_measure = _getter(measure_accessor)
    buckets: dict[Tuple[int, int], float] = defaultdict(float)
    for r in records:
        d = _as_date(get_date(r))
        if d is None:
            continue
        buckets[(d.year, d.month)] += _number(get_measure(r))

    return [
        MonthlyPoint(month=_month_label(year, month), value=value)
        for (year, month), value in sorted(buckets.items())
    ]


def engagement_trends(engagement_records: Iterable[Any]) -> List[EngagementTrendPoint]:
    """Likes, comments and shares summed per date, ascending."""
    by_date: dict[dt.date, EngagementTrendPoint] = {}
    for r in engagement_records:
        d = _as_date(_field(r, "date"))
        if d is None:
            continue
        point = by_date.setdefault(d, EngagementTrendPoint(date=d.isoformat()))
        point.likes += _number(_field(r, "likes"))
        point.comments += _number(_field(r, "comments"))
        point.shares += _number(_field(r, "shares"))
    return [by_date[d] for d in sorted(by_date)]


# ─────────────────────────────────────────────
# RECENT ACTIVITY
# ─────────────────────────────────────────────


def _series_key(record: Any) -> Tuple[Any, ...]:
    return tuple(
        _label(_field(record, key)) for key in ("platform", "business_unit", "country")
    )


def recent_activity(
    social_records: Iterable[Any],
    engagement_records: Iterable[Any],
    limit: Optional[int] = None,
    window_days: Optional[int] = None,
    social_history: Optional[Iterable[Any]] = None,
) -> List[ActivityItem]:
    """Newest follower changes and engagement entries, newest first.

    A follower entry is compared with the latest earlier entry of the same
    platform, business unit and country within `window_days`; without one
    the whole follower count is reported as an increase. Earlier entries
    are looked up in `social_history` when given, else in `social_records`.
    """
    limit = limit if limit is not None else settings.recent_activity_limit
    window_days = (
        window_days if window_days is not None else settings.recent_activity_window_days
    )
    social_records = [r for r in social_records if _as_date(_field(r, "date"))]
    engagement_records = [r for r in engagement_records if _as_date(_field(r, "date"))]

    def by_date(record: Any) -> dt.date:
        return _as_date(_field(record, "date"))

    history: dict[Tuple[Any, ...], List[Any]] = defaultdict(list)
    pool = social_records if social_history is None else social_history
    for o in pool:
        if _as_date(_field(o, "date")):
            history[_series_key(o)].append(o)

    dated: List[Tuple[dt.date, dict]] = []

    for r in sorted(social_records, key=by_date, reverse=True)[:limit]:
        current_date = by_date(r)
        window_start = current_date - dt.timedelta(days=window_days)
        previous = max(
            (
                o
                for o in history[_series_key(r)]
                if window_start <= by_date(o) < current_date
            ),
            key=by_date,
            default=None,
        )
        followers = _field(r, "followers")
        if previous is None:
            change, value = "increase", _number(followers)
        else:
            prev_followers = _number(_field(previous, "followers"))
            increased = followers is not None and followers >= prev_followers
            change = "increase" if increased else "decrease"
            value = abs(_number(followers) - prev_followers)
        dated.append(
            (
                current_date,
                {
                    "platform": _label(_field(r, "platform")),
                    "business_unit": _label(_field(r, "business_unit")),
                    "metric": "Followers",
                    "value": value,
                    "change": change,
                },
            )
        )

    for r in sorted(engagement_records, key=by_date, reverse=True)[:limit]:
        dated.append(
            (
                by_date(r),
                {
                    "platform": _label(_field(r, "platform")),
                    "business_unit": _label(_field(r, "business_unit")),
                    "metric": "Engagement",
                    "value": sum(
                        _number(_field(r, k)) for k in ("likes", "comments", "shares")
                    ),
                    "change": "increase",
                },
            )
        )

    dated.sort(key=lambda item: item[0], reverse=True)
    return [
        ActivityItem(id=i, date=d.isoformat(), **fields)
        for i, (d, fields) in enumerate(dated[:limit], start=1)
    ]


# ─────────────────────────────────────────────
# NEWSLETTER
# ─────────────────────────────────────────────


def newsletter_summary(newsletter_records: Iterable[Any]) -> NewsletterSummary:
    """Latest-period recipients, emails and recipient-weighted open rate."""
    records = list(newsletter_records)
    latest = latest_date(records)
    if latest is None:
        return NewsletterSummary()

    rows = [r for r in records if _as_date(_field(r, "date")) == latest]
    rated = [r for r in rows if _field(r, "open_rate") is not None]
    weight = sum(_number(_field(r, "recipients")) for r in rated)
    if weight:
        open_rate = (
            sum(_field(r, "open_rate") * _number(_field(r, "recipients")) for r in rated)
            / weight
        )
    elif rated:
        open_rate = sum(_field(r, "open_rate") for r in rated) / len(rated)
    else:
        open_rate = None

    return NewsletterSummary(
        recipients=sum(_number(_field(r, "recipients")) for r in rows),
        number_of_emails=sum(_number(_field(r, "number_of_emails")) for r in rows),
        open_rate=round(open_rate, 4) if open_rate is not None else None,
        open_rate_pct=round(open_rate * 100, 2) if open_rate is not None else None,
    )
