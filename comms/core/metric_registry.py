"""COMMS — Unified Metric Registry.

Defines the canonical dimensions, record kinds and measures of the
dashboard. The store, the rollup engine and the API all resolve kinds
and measures through this module so that a new measure only needs to be
registered here (and added as a column on its model).
"""

from enum import Enum
from typing import Dict, Tuple


class Platform(str, Enum):
    FACEBOOK = "FACEBOOK"
    INSTAGRAM = "INSTAGRAM"
    LINKEDIN = "LINKEDIN"
    TIKTOK = "TIKTOK"
    WEBSITE = "WEBSITE"
    NEWSLETTER = "NEWSLETTER"


class BusinessUnit(str, Enum):
    ASM = "ASM"
    IACL = "IACL"
    EM = "EM"
    KCL = "KCL"


class MetricKind(str, Enum):
    """Record kinds, also the path segment used by /metrics/{kind}."""

    SOCIAL = "social"
    WEBSITE = "website"
    NEWSLETTER = "newsletter"
    ENGAGEMENT = "engagement"


class MetricType(str, Enum):
    """How a measure is rolled up over a period."""

    AUDIENCE = "audience"  # Stock: followers, users, recipients (snapshot at latest date)
    VOLUME = "volume"  # Flow: impressions, posts, clicks (summed over the period)
    RATE = "rate"  # Fraction 0..1, never summed across records


class MeasureDefinition:
    """Describes a single measure."""

    def __init__(
        self, name: str, metric_type: MetricType, unit: str = "", description: str = ""
    ):
        self.name = name
        self.metric_type = metric_type
        self.unit = unit
        self.description = description

    def __repr__(self) -> str:
        return f"<Measure {self.name} ({self.metric_type.value})>"


GLOBAL_COUNTRY = "GLOBAL"
GLOBAL_ROW_LABEL = "Global"

# Engagement metrics only exist for the social networks themselves
SOCIAL_PLATFORMS = (
    Platform.FACEBOOK,
    Platform.INSTAGRAM,
    Platform.LINKEDIN,
    Platform.TIKTOK,
)


# ─────────────────────────────────────────────
# MEASURES — per record kind
# ─────────────────────────────────────────────

KIND_MEASURES: Dict[MetricKind, Dict[str, MeasureDefinition]] = {
    MetricKind.SOCIAL: {
        "impressions": MeasureDefinition(
            "impressions", MetricType.VOLUME, "count", "Times content was shown"
        ),
        "followers": MeasureDefinition(
            "followers", MetricType.AUDIENCE, "count", "Followers at period start"
        ),
        "number_of_posts": MeasureDefinition(
            "number_of_posts", MetricType.VOLUME, "count", "Posts published"
        ),
    },
    MetricKind.WEBSITE: {
        "users": MeasureDefinition(
            "users", MetricType.AUDIENCE, "count", "Unique website users"
        ),
        "clicks": MeasureDefinition("clicks", MetricType.VOLUME, "count", "Clicks"),
        "sessions": MeasureDefinition(
            "sessions", MetricType.VOLUME, "count", "Website sessions"
        ),
    },
    MetricKind.NEWSLETTER: {
        "recipients": MeasureDefinition(
            "recipients", MetricType.AUDIENCE, "count", "Subscribed recipients"
        ),
        "open_rate": MeasureDefinition(
            "open_rate", MetricType.RATE, "fraction", "Opens / delivered, 0..1"
        ),
        "number_of_emails": MeasureDefinition(
            "number_of_emails", MetricType.VOLUME, "count", "Emails sent"
        ),
    },
    MetricKind.ENGAGEMENT: {
        "likes": MeasureDefinition("likes", MetricType.VOLUME, "count", "Likes"),
        "comments": MeasureDefinition(
            "comments", MetricType.VOLUME, "count", "Comments"
        ),
        "shares": MeasureDefinition("shares", MetricType.VOLUME, "count", "Shares"),
        "saves": MeasureDefinition("saves", MetricType.VOLUME, "count", "Saves"),
        "clicks": MeasureDefinition("clicks", MetricType.VOLUME, "count", "Clicks"),
        "engagement_rate": MeasureDefinition(
            "engagement_rate", MetricType.RATE, "fraction", "Engagements / reach, 0..1"
        ),
    },
}

# Logical (upsert) key per kind, in column order
KIND_KEYS: Dict[MetricKind, Tuple[str, ...]] = {
    MetricKind.SOCIAL: ("platform", "business_unit", "country", "date"),
    MetricKind.WEBSITE: ("business_unit", "country", "date"),
    MetricKind.NEWSLETTER: ("business_unit", "country", "date"),
    MetricKind.ENGAGEMENT: ("platform", "business_unit", "date"),
}


# ─────────────────────────────────────────────
# PRESENTATION LOOKUPS
# ─────────────────────────────────────────────

PLATFORM_COLORS: Dict[str, str] = {
    Platform.FACEBOOK.value: "#1877F2",
    Platform.INSTAGRAM.value: "#E4405F",
    Platform.LINKEDIN.value: "#0A66C2",
    Platform.TIKTOK.value: "#000000",
}

PLATFORM_DISPLAY_NAMES: Dict[str, str] = {
    Platform.FACEBOOK.value: "Facebook",
    Platform.INSTAGRAM.value: "Instagram",
    Platform.LINKEDIN.value: "LinkedIn",
    Platform.TIKTOK.value: "TikTok",
    Platform.WEBSITE.value: "Website",
    Platform.NEWSLETTER.value: "Newsletter",
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────


def get_measure(kind: MetricKind, name: str) -> MeasureDefinition | None:
    """Look up a measure of a kind by name."""
    return KIND_MEASURES.get(kind, {}).get(name)


def measure_names(kind: MetricKind) -> list[str]:
    """Return the measure column names of a kind."""
    return list(KIND_MEASURES[kind].keys())


def dimension_names(kind: MetricKind) -> list[str]:
    """Return the key columns of a kind, without the date."""
    return [k for k in KIND_KEYS[kind] if k != "date"]
