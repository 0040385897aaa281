"""Tests for the lead score calculator."""

import pytest

from aurelia.models.lead_score import LeadTier, SignalSnapshot
from aurelia.scoring.calculator import compute_score, normalize_path, tier_for_total, utm_weight


class TestComputeScore:
    """Tests for compute_score."""

    def test_reference_ultra_snapshot(self, ultra_snapshot):
        """The reference high-intent visitor scores 98."""
        score = compute_score(ultra_snapshot)

        assert score.breakdown == {
            "pricing_page": 15,
            "time_engagement": 15,
            "scroll_depth": 8,
            "return_visitor": 20,
            "multiple_sessions": 15,
            "utm_quality": 25,
        }
        assert score.total == 98
        assert score.tier == LeadTier.QUALIFIED

    def test_empty_snapshot_is_cold(self):
        """An empty snapshot fires no rules."""
        score = compute_score(SignalSnapshot())

        assert score.total == 0
        assert score.breakdown == {}
        assert score.tier == LeadTier.COLD

    def test_form_interactions_capped(self):
        """Ten form interactions contribute 25, not 50."""
        score = compute_score(SignalSnapshot(form_interactions=10))

        assert score.breakdown == {"form_interaction": 25}

    def test_single_form_interaction(self):
        score = compute_score(SignalSnapshot(form_interactions=1))

        assert score.breakdown["form_interaction"] == 5

    def test_deterministic(self, ultra_snapshot):
        """Same input, same output."""
        assert compute_score(ultra_snapshot) == compute_score(ultra_snapshot)

    @pytest.mark.parametrize(
        "seconds,expected",
        [(119, None), (120, 5), (299, 5), (300, 10), (599, 10), (600, 15), (5000, 15)],
    )
    def test_time_on_site_awards_single_band(self, seconds, expected):
        """Only the highest time band reached is awarded."""
        score = compute_score(SignalSnapshot(time_on_site_seconds=seconds))

        assert score.breakdown.get("time_engagement") == expected
        assert score.total == (expected or 0)

    @pytest.mark.parametrize(
        "percent,expected",
        [(49, None), (50, 3), (74.9, 3), (75, 5), (89, 5), (90, 8), (100, 8)],
    )
    def test_scroll_depth_awards_single_band(self, percent, expected):
        """Only the highest scroll band reached is awarded."""
        score = compute_score(SignalSnapshot(scroll_depth_percent=percent))

        assert score.breakdown.get("scroll_depth") == expected
        assert score.total == (expected or 0)

    def test_return_visitor_without_multiple_sessions(self):
        score = compute_score(SignalSnapshot(return_visits=2))

        assert score.breakdown == {"return_visitor": 20}

    def test_services_viewed_threshold(self):
        assert "services_viewed_3plus" not in compute_score(SignalSnapshot(services_viewed=2)).breakdown
        assert compute_score(SignalSnapshot(services_viewed=3)).breakdown["services_viewed_3plus"] == 10

    def test_trial_started(self):
        score = compute_score(SignalSnapshot(trial_started=True))

        assert score.breakdown == {"trial_started": 30}
        assert score.tier == LeadTier.WARM

    def test_each_page_rule_fires_once(self):
        """Visiting several matching paths does not stack a rule."""
        snapshot = SignalSnapshot(pages_visited=["/pricing", "/membership", "/pricing/annual"])

        assert compute_score(snapshot).breakdown == {"pricing_page": 15}

    def test_all_page_rules(self):
        snapshot = SignalSnapshot(pages_visited=["/pricing", "/services", "/contact", "/apply"])

        assert compute_score(snapshot).breakdown == {
            "pricing_page": 15,
            "services_page": 10,
            "contact_page": 10,
            "trial_page": 20,
        }

    def test_page_matching_is_by_path_segment(self):
        """'/pricingx' is not the pricing page, '/Pricing/?plan=pro' is."""
        assert compute_score(SignalSnapshot(pages_visited=["/pricingx"])).total == 0
        assert compute_score(SignalSnapshot(pages_visited=["/Pricing/?plan=pro"])).total == 15


class TestUtmWeight:
    """Tests for attribution priority."""

    @pytest.mark.parametrize(
        "source,medium,expected",
        [
            ("linkedin", None, 25),
            ("LinkedIn", "email", 25),
            ("google", "cpc", 20),
            ("google", "organic", None),
            ("partner-site", "referral", 15),
            ("newsletter", "email", 10),
            (None, None, None),
            ("twitter", "social", None),
        ],
    )
    def test_first_match_only(self, source, medium, expected):
        assert utm_weight(source, medium) == expected


class TestTiers:
    """Tests for display tier boundaries."""

    @pytest.mark.parametrize(
        "total,tier",
        [
            (0, LeadTier.COLD),
            (24, LeadTier.COLD),
            (25, LeadTier.WARM),
            (49, LeadTier.WARM),
            (50, LeadTier.HOT),
            (79, LeadTier.HOT),
            (80, LeadTier.QUALIFIED),
            (140, LeadTier.QUALIFIED),
        ],
    )
    def test_boundaries(self, total, tier):
        assert tier_for_total(total) == tier


class TestNormalizePath:
    """Tests for path normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("/Pricing/", "/pricing"),
            ("/pricing?utm_source=x", "/pricing"),
            ("/contact#form", "/contact"),
            ("/", "/"),
            ("", "/"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected
