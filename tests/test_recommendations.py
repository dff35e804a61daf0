"""
Unit tests for personalized route recommendations

Run with: pytest tests/test_recommendations.py
"""

import pytest

from routescore.recommendations import (
    ConstantPreferenceStrategy,
    PreferenceStrategy,
    PreferenceVector,
    calculate_recommendation_score,
    generate_recommendation_reason,
    generate_user_recommendations,
    get_recommendation_type,
)

FACTORS = {"reliability": 80, "speed": 75, "safety": 90, "comfort": 85, "cost": 70, "frequency": 95}


class RecordingStrategy(PreferenceStrategy):
    """Cost-only preferences; remembers the reports it was given"""

    def __init__(self):
        self.seen = None

    def derive(self, user_reports):
        self.seen = list(user_reports)
        return PreferenceVector(efficiency=0.0, safety=0.0, cost=1.0, convenience=0.0)


class TestScoringHelpers:
    """Tests for recommendation score, reason and type"""

    def test_default_preferences(self):
        assert ConstantPreferenceStrategy().derive([]) == PreferenceVector(0.3, 0.3, 0.2, 0.2)

    def test_strategy_requires_derive(self):
        class Incomplete(PreferenceStrategy):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_recommendation_score(self):
        # 80*.3 + 90*.3 + 30*.2 + 85*.2
        assert calculate_recommendation_score(FACTORS, PreferenceVector()) == pytest.approx(74.0)

    def test_reason_priority(self):
        assert generate_recommendation_reason(FACTORS) == "High safety rating"
        assert generate_recommendation_reason(dict(FACTORS, safety=80, reliability=90)) == "Very reliable service"
        assert generate_recommendation_reason(dict(FACTORS, safety=80, cost=30)) == "Great value for money"
        assert generate_recommendation_reason(dict(FACTORS, safety=80)) == "Good overall performance"

    def test_type_picks_strongest(self):
        assert get_recommendation_type(FACTORS) == "safety"
        assert get_recommendation_type(dict(FACTORS, cost=0)) == "cost"

    def test_type_ties_go_to_later_key(self):
        factors = {"reliability": 90, "safety": 90, "cost": 10, "comfort": 90}
        assert get_recommendation_type(factors) == "convenience"
        assert get_recommendation_type(dict(factors, comfort=50)) == "cost"


class TestGenerateUserRecommendations:
    """Tests for generate_user_recommendations"""

    @pytest.fixture
    def network(self, make_route, make_report):
        make_route("CHEAP", fare=40.0)
        make_route("PRICEY", fare=90.0)
        make_route("SAFE", fare=90.0)
        make_route("GONE", fare=90.0, is_active=False)
        make_report(route_id="SAFE", report_type="delay", severity="low", user_id="u1")

    def test_threshold_and_ordering(self, db_session, network, now):
        result = generate_user_recommendations(db_session, "u1", now=now)

        assert [r.route_id for r in result.recommendations] == ["SAFE", "PRICEY"]

        safe, pricey = result.recommendations
        assert safe.score == 88
        assert safe.reason == "Very reliable service"
        assert safe.type == "cost"
        assert pricey.score == 73
        assert pricey.reason == "Great value for money"

    def test_limit(self, db_session, network, now):
        result = generate_user_recommendations(db_session, "u1", limit=1, now=now)
        assert [r.route_id for r in result.recommendations] == ["SAFE"]

    def test_custom_strategy(self, db_session, network, now):
        strategy = RecordingStrategy()

        result = generate_user_recommendations(db_session, "u1", strategy=strategy, now=now)

        assert [r.user_id for r in strategy.seen] == ["u1"]
        assert [r.route_id for r in result.recommendations] == ["PRICEY", "SAFE"]
        assert all(r.score == 100 for r in result.recommendations)
        assert result.preferences.cost == 1.0

    def test_no_routes(self, db_session, now):
        result = generate_user_recommendations(db_session, "nobody", now=now)
        assert result.recommendations == []

    def test_to_dict(self, db_session, network, now):
        data = generate_user_recommendations(db_session, "u1", now=now).to_dict()

        assert data["user_id"] == "u1"
        assert data["preferences"] == {"efficiency": 0.3, "safety": 0.3, "cost": 0.2, "convenience": 0.2}
        assert data["recommendations"][0]["route_id"] == "SAFE"
        assert data["last_updated"] == now.isoformat()
