"""
Smoke tests for the route score service

Quick tests that verify critical paths are working.
These should run fast (<10s) and fail fast if something is fundamentally broken.

Run with: pytest -m smoke
"""

import json
import logging

import pytest
from sqlalchemy import text

from pipelines import compute_route_scores
from routescore.config import get_settings
from routescore.logging_config import JSONFormatter
from routescore.models import Route, Score
from scripts.init_database import SAMPLE_ROUTES, seed_sample_routes


@pytest.mark.smoke
def test_database_connection(db_session):
    """Test that database connection works"""
    result = db_session.execute(text("SELECT 1")).scalar()
    assert result == 1


@pytest.mark.smoke
def test_api_server_responds(client):
    """Test that API server starts and responds"""
    response = client.get("/api/scores")
    assert response.status_code == 200


@pytest.mark.smoke
def test_settings_from_environment(monkeypatch):
    """Test settings are read from environment variables"""
    monkeypatch.setenv("SCORE_RECOMPUTE_INTERVAL_SECONDS", "60")
    monkeypatch.setenv("ANALYTICS_MAX_WORKERS", "0")
    monkeypatch.setenv("LOG_JSON", "true")

    settings = get_settings()

    assert settings.database_url == "sqlite://"
    assert settings.score_recompute_interval_seconds == 60
    assert settings.score_scheduler_enabled is False
    assert settings.analytics_max_workers == 1
    assert settings.log_json is True


@pytest.mark.smoke
def test_json_formatter_includes_route_context():
    """Test structured log records carry route_id and duration extras"""
    record = logging.LogRecord("routescore.scoring", logging.INFO, __file__, 1, "scored %s", ("R1",), None)
    record.route_id = "R1"
    record.duration_seconds = 0.25

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "scored R1"
    assert entry["route_id"] == "R1"
    assert entry["duration_seconds"] == 0.25
    assert entry["level"] == "INFO"


@pytest.mark.smoke
def test_seed_sample_routes_is_idempotent(db_session):
    """Test seeding twice inserts the sample routes once"""
    assert seed_sample_routes(db_session) == len(SAMPLE_ROUTES)
    assert seed_sample_routes(db_session) == 0

    route = db_session.query(Route).filter_by(route_id="R23").one()
    assert route.stop_names[0] == "Railways"
    assert len(route.stops) == 7


@pytest.mark.smoke
def test_compute_route_scores_pipeline(db_session, session_factory, monkeypatch, capsys):
    """Test the batch pipeline scores seeded routes"""
    seed_sample_routes(db_session)
    monkeypatch.setattr(compute_route_scores, "get_session", session_factory)
    monkeypatch.setattr(compute_route_scores, "init_db", lambda: None)
    monkeypatch.setattr(compute_route_scores, "setup_logging", lambda **kwargs: None)

    assert compute_route_scores.main([]) == 0
    assert db_session.query(Score).count() == len(SAMPLE_ROUTES)

    assert compute_route_scores.main(["--route", "MISSING"]) == 1
    assert compute_route_scores.main(["--stats"]) == 0

    output = capsys.readouterr().out
    assert "ROUTE SCORE COMPUTATION" in output
    assert "Route MISSING not found" in output
    assert "SCORING STATISTICS" in output
