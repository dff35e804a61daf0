"""
Unit tests for trend analysis and demand forecasting

Run with: pytest tests/test_trends.py
"""

from datetime import datetime, timedelta

import pytest

from routescore.analytics import (
    analyze_trends,
    forecast_demand,
    generate_trend_insights,
    get_seasonality_factor,
    percent_change,
)
from routescore.exceptions import InvalidInputError, RouteNotFoundError


class TestTrendHelpers:
    """Tests for percent change and insight rules"""

    def test_percent_change(self):
        assert percent_change(3, 2) == pytest.approx(50.0)
        assert percent_change(1, 2) == pytest.approx(-50.0)
        assert percent_change(5, 0) == 0.0

    def test_insights(self):
        assert generate_trend_insights(0, 0, 0) == []
        assert generate_trend_insights(-20, -6, 20) == [
            "Ridership is declining, consider promotional activities",
            "Route efficiency needs attention",
            "Safety concerns are increasing",
        ]


class TestAnalyzeTrends:
    """Tests for analyze_trends"""

    @pytest.fixture
    def history(self, sample_route, make_report, now):
        # Current week
        make_report(report_type="delay", severity="low", created_at=now - timedelta(days=1))
        make_report(report_type="crowding", severity="low", created_at=now - timedelta(days=2))
        make_report(report_type="safety", severity="high", created_at=now - timedelta(days=3))
        make_report(report_type="delay", severity="critical", status="dismissed", created_at=now - timedelta(days=1))
        # Previous week
        make_report(report_type="safety", severity="medium", created_at=now - timedelta(days=10))
        make_report(report_type="safety", severity="low", created_at=now - timedelta(days=9))

    def test_weekly_trends(self, db_session, history, now):
        result = analyze_trends(db_session, "R1", "weekly", now=now)

        ridership = result.trends["ridership"]
        assert (ridership["current"], ridership["previous"]) == (3, 2)
        assert ridership["change"] == 50.0
        assert ridership["trend"] == "increasing"

        safety = result.trends["safety"]
        assert (safety["current"], safety["previous"]) == (1, 2)
        assert safety["change"] == -50.0
        assert safety["trend"] == "safer"

        efficiency = result.trends["efficiency"]
        assert (efficiency["current"], efficiency["previous"]) == (85, 67)
        assert efficiency["change"] == 26.87
        assert efficiency["trend"] == "improving"

        assert result.trends["cost"] == {"current": 40.0, "previous": 40.0, "change": 0.0, "trend": "stable"}

        assert result.insights == [
            "Ridership is increasing significantly",
            "Route efficiency is improving",
            "Safety incidents have decreased",
        ]

    def test_period_lengths(self, db_session, sample_route, make_report, now):
        make_report(created_at=now - timedelta(hours=2))
        make_report(created_at=now - timedelta(days=3))
        make_report(created_at=now - timedelta(days=20))

        daily = analyze_trends(db_session, "R1", "daily", now=now)
        weekly = analyze_trends(db_session, "R1", "weekly", now=now)
        monthly = analyze_trends(db_session, "R1", "monthly", now=now)

        assert daily.trends["ridership"]["current"] == 1
        assert weekly.trends["ridership"]["current"] == 2
        assert monthly.trends["ridership"]["current"] == 3

    def test_no_history_is_stable(self, db_session, sample_route, now):
        result = analyze_trends(db_session, "R1", now=now)

        assert result.period == "weekly"
        for trend in result.trends.values():
            assert trend["change"] == 0
            assert trend["trend"] == "stable"
        assert result.insights == []

    def test_invalid_period(self, db_session, sample_route, now):
        with pytest.raises(InvalidInputError):
            analyze_trends(db_session, "R1", "yearly", now=now)

    def test_route_not_found(self, db_session, now):
        with pytest.raises(RouteNotFoundError):
            analyze_trends(db_session, "MISSING", "weekly", now=now)

    def test_to_dict(self, db_session, history, now):
        data = analyze_trends(db_session, "R1", "weekly", now=now).to_dict()

        assert data["period"] == "weekly"
        assert data["last_updated"] == now.isoformat()
        assert set(data["trends"]) == {"ridership", "efficiency", "safety", "cost"}


class TestForecastDemand:
    """Tests for forecast_demand"""

    def test_seasonality(self):
        assert get_seasonality_factor(datetime(2025, 4, 1)) == 1.1
        assert get_seasonality_factor(datetime(2025, 11, 1)) == 1.05
        assert get_seasonality_factor(datetime(2025, 6, 1)) == 1.0
        assert get_seasonality_factor(datetime(2025, 1, 1)) == 1.0

    def test_no_reports_is_low_demand(self, db_session, sample_route, now):
        result = forecast_demand(db_session, "R1", "08:00", now=now)

        assert result.predicted_demand == 0
        assert result.confidence == 60
        assert result.recommendations == ["Low demand period, consider reducing frequency"]
        assert result.time_slot == "08:00"

    def test_moderate_demand(self, db_session, sample_route, make_report, now):
        for _ in range(20):
            make_report()

        result = forecast_demand(db_session, "R1", "12:00", now=now)

        assert result.predicted_demand == 40
        assert result.factors["historical"] == 40
        assert result.confidence == 90
        assert result.recommendations == []

    def test_high_demand_with_seasonality(self, db_session, sample_route, make_report):
        april = datetime(2025, 4, 15, 8, 0)
        for _ in range(45):
            make_report(created_at=april - timedelta(days=2))

        result = forecast_demand(db_session, "R1", "08:00", now=april)

        assert result.factors["seasonality"] == 1.1
        assert result.predicted_demand == 99
        assert result.confidence == 95
        assert result.recommendations == ["Consider increasing frequency during this time"]

    def test_demand_clamped_at_hundred(self, db_session, sample_route, make_report):
        april = datetime(2025, 4, 15, 8, 0)
        for _ in range(55):
            make_report(created_at=april - timedelta(days=1))

        result = forecast_demand(db_session, "R1", "08:00", now=april)
        assert result.predicted_demand == 100

    def test_route_not_found(self, db_session, now):
        with pytest.raises(RouteNotFoundError):
            forecast_demand(db_session, "MISSING", "08:00", now=now)
