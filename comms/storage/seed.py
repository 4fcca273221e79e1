"""COMMS — Demo Data Seeding.

Adds one social metric row per (social platform, business unit) pair that
has no data yet, dated today, so a fresh dashboard has something to show.
"""

import datetime as dt
import random
from typing import List, Optional

from sqlmodel import Session

from comms.core.metric_registry import (
    SOCIAL_PLATFORMS,
    BusinessUnit,
    GLOBAL_COUNTRY,
    MetricKind,
)
from comms.models.metric_models import SocialMetricCreate
from comms.storage import metrics_store as store
from comms.core.logging import get_logger

logger = get_logger("storage.seed")


def seed_test_data(
    session: Session,
    today: Optional[dt.date] = None,
    rng: Optional[random.Random] = None,
) -> List[dict]:
    """Seed missing platform/business-unit pairs. Returns what was added."""
    today = today or dt.date.today()
    rng = rng or random.Random()
    added: List[dict] = []

    for platform in SOCIAL_PLATFORMS:
        for business_unit in BusinessUnit:
            existing = store.find_latest_by_dimensions(
                session,
                MetricKind.SOCIAL,
                platform=platform,
                business_unit=business_unit,
            )
            if existing is not None:
                continue

            record = store.upsert_by_key(
                session,
                MetricKind.SOCIAL,
                SocialMetricCreate(
                    platform=platform,
                    business_unit=business_unit,
                    country=GLOBAL_COUNTRY,
                    date=today,
                    impressions=rng.randrange(10000),
                    followers=rng.randrange(5000),
                    number_of_posts=rng.randrange(50),
                ),
            )
            added.append(
                {
                    "id": record.id,
                    "platform": platform.value,
                    "business_unit": business_unit.value,
                }
            )

    logger.info(f"Seeded {len(added)} social metric rows")
    return added
