import datetime as dt

import pytest
from fastapi.testclient import TestClient


def test_totals_are_zero_without_data(client: TestClient):
    r = client.get("/analytics/total-metrics")
    assert r.status_code == 200
    assert r.json() == {
        "totalFollowers": 0,
        "totalWebsiteUsers": 0,
        "totalNewsletterRecipients": 0,
        "totalPosts": 0,
    }


def test_totals_use_latest_date(client, social_factory, website_factory, newsletter_factory):
    social_factory(country="US", date=dt.date(2024, 1, 1), followers=999, number_of_posts=9)
    social_factory(country="US", date=dt.date(2024, 1, 8), followers=100, number_of_posts=2)
    social_factory(country="UK", date=dt.date(2024, 1, 8), followers=50, number_of_posts=1)
    website_factory(country="US", date=dt.date(2024, 1, 1), users=30)
    newsletter_factory(country="US", date=dt.date(2024, 1, 1), recipients=12)

    data = client.get("/analytics/total-metrics").json()
    assert data["totalFollowers"] == 150
    assert data["totalPosts"] == 3
    assert data["totalWebsiteUsers"] == 30
    assert data["totalNewsletterRecipients"] == 12


def test_country_distribution(client, social_factory, website_factory):
    social_factory(platform="FACEBOOK", country="US", followers=100)
    social_factory(platform="FACEBOOK", country="UK", followers=50)
    website_factory(country="UK", users=7)

    rows = client.get("/analytics/country-distribution").json()
    assert rows[0] == {
        "country": "Global",
        "followers": 150,
        "websiteUsers": 7,
        "newsletterRecipients": 0,
    }
    assert [(r["country"], r["followers"]) for r in rows[1:]] == [("US", 100), ("UK", 50)]


def test_platform_breakdown(client, social_factory):
    social_factory(platform="FACEBOOK", followers=300)
    social_factory(platform="INSTAGRAM", followers=100)

    shares = client.get("/analytics/platform-breakdown").json()
    assert {s["platform"]: s["value"] for s in shares} == {
        "FACEBOOK": pytest.approx(75),
        "INSTAGRAM": pytest.approx(25),
    }
    assert shares[1]["color"] == "#E4405F"


def test_monthly_series(client, social_factory):
    social_factory(date=dt.date(2024, 1, 1), impressions=10)
    social_factory(date=dt.date(2024, 1, 15), impressions=5)
    social_factory(date=dt.date(2024, 3, 4), impressions=1)

    r = client.get("/analytics/monthly", params={"kind": "social", "measure": "impressions"})
    assert r.json() == [
        {"month": "Jan 2024", "value": 15},
        {"month": "Mar 2024", "value": 1},
    ]


def test_unknown_measure_is_rejected(client: TestClient):
    r = client.get("/analytics/monthly", params={"kind": "website", "measure": "followers"})
    assert r.status_code == 400
    r = client.get("/analytics/growth", params={"kind": "newsletter", "measure": "likes"})
    assert r.status_code == 400


def test_growth_without_data(client: TestClient):
    data = client.get("/analytics/growth").json()
    assert data["kind"] == "social"
    assert data["measure"] == "followers"
    assert data["growthRate"] == 0
    assert data["baselineAvailable"] is False


def test_engagement_trends(client: TestClient):
    for day, likes in (("2024-01-08", 4), ("2024-01-01", 1), ("2024-01-08", 2)):
        platform = "FACEBOOK" if likes != 2 else "INSTAGRAM"
        client.post(
            "/metrics/engagement",
            json={"platform": platform, "business_unit": "ASM", "date": day, "likes": likes},
        )

    r = client.get(
        "/analytics/engagement-trends",
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
    )
    assert [(p["date"], p["likes"]) for p in r.json()] == [
        ("2024-01-01", 1),
        ("2024-01-08", 6),
    ]
    assert client.get("/analytics/engagement-trends").status_code == 422


def test_recent_activity(client, social_factory):
    social_factory(date=dt.date(2024, 1, 1), followers=100)
    social_factory(date=dt.date(2024, 1, 8), followers=130)

    items = client.get("/analytics/recent-activity", params={"limit": 1}).json()
    assert len(items) == 1
    assert items[0]["value"] == 30
    assert items[0]["change"] == "increase"
    assert items[0]["businessUnit"] == "ASM"


def test_overview(client, social_factory, newsletter_factory):
    social_factory(country="US", followers=10)
    newsletter_factory(country="US", recipients=200, open_rate=0.25)

    data = client.get("/analytics/overview").json()
    assert data["totals"]["totalFollowers"] == 10
    assert data["countryDistribution"][0]["country"] == "Global"
    assert data["platformBreakdown"][0]["value"] == 100
    assert data["newsletter"]["openRatePct"] == 25
    assert data["followerGrowth"]["measure"] == "followers"


def test_recent_activity_compares_within_the_window(client, social_factory):
    social_factory(country="US", date=dt.date(2024, 1, 1), followers=100)
    social_factory(country="US", date=dt.date(2024, 1, 8), followers=130)
    social_factory(platform="TIKTOK", date=dt.date(2024, 2, 1), followers=40)

    items = client.get("/analytics/recent-activity", params={"limit": 2}).json()
    assert [(i["platform"], i["date"], i["value"]) for i in items] == [
        ("TIKTOK", "2024-02-01", 40),
        ("FACEBOOK", "2024-01-08", 30),
    ]
