"""
FastAPI application for the route scoring and analytics API

Serves stored route scores (written by the background recompute scheduler)
and on-demand analytics computed from crowd-sourced incident reports.
"""

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.aggregations import get_all_routes_scorecard, get_route_score_detail, score_to_dict
from routescore.analytics import (
    analyze_trends,
    calculate_bulk_efficiency,
    calculate_route_efficiency,
    compare_routes,
    find_alternative_routes,
    forecast_demand,
    predict_travel_time,
)
from routescore.config import get_settings
from routescore.database import get_db, get_session, init_db
from routescore.exceptions import InvalidInputError, PassInProgressError, RoutescoreError, RouteNotFoundError
from routescore.logging_config import setup_logging
from routescore.recommendations import generate_user_recommendations
from routescore.scheduler import build_score_scheduler
from routescore.scoring import (
    calculate_route_score,
    get_scoring_stats,
    get_top_scores,
    get_worst_scores,
    recompute_all_scores,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    init_db()

    scheduler = None
    if settings.score_scheduler_enabled:
        scheduler = build_score_scheduler(get_session, interval_seconds=settings.score_recompute_interval_seconds)
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop(timeout=30)


# Create FastAPI app
app = FastAPI(
    title="Route Score API",
    description="REST API for crowd-sourced transit route scores and analytics",
    version="1.0.0",
    lifespan=lifespan,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RouteNotFoundError)
async def route_not_found_handler(request: Request, exc: RouteNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@contextmanager
def log_failures(action: str):
    """Log unexpected errors from an analytics call and re-raise them"""
    try:
        yield
    except RoutescoreError:
        raise
    except Exception:
        logger.exception("%s failed", action)
        raise


class RouteIdsRequest(BaseModel):
    route_ids: list[str]


def _get_scheduler(request: Request):
    return getattr(request.app.state, "scheduler", None)


@app.get("/")
async def root():
    """API root - health check"""
    return {"status": "ok", "name": "Route Score API", "version": "1.0.0", "docs": "/docs"}


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


@app.get("/api/scores")
def get_scores(limit: Optional[int] = None, db: Session = Depends(get_db)):
    """
    Get the score card for all active routes

    Args:
        limit: Maximum number of routes to return (default: all)

    Returns:
        List of route scores with letter grades, best first
    """
    return get_all_routes_scorecard(db, limit=limit)


@app.get("/api/scores/top")
def get_top_routes(limit: int = 10, db: Session = Depends(get_db)):
    """Highest scoring routes"""
    return [score_to_dict(s) for s in get_top_scores(db, limit=limit)]


@app.get("/api/scores/worst")
def get_worst_routes(limit: int = 10, db: Session = Depends(get_db)):
    """Lowest scoring routes"""
    return [score_to_dict(s) for s in get_worst_scores(db, limit=limit)]


@app.get("/api/scores/stats")
def get_stats(request: Request, db: Session = Depends(get_db)):
    """
    Scoring statistics and scheduler status

    Returns:
        Route/score/report counters, average overall score and the state of
        the background recompute scheduler (null when disabled)
    """
    stats = get_scoring_stats(db)
    if stats["last_calculated"] is not None:
        stats["last_calculated"] = stats["last_calculated"].isoformat()

    scheduler = _get_scheduler(request)
    if scheduler is None:
        stats["scheduler"] = None
    else:
        stats["scheduler"] = {
            "is_running": scheduler.is_running,
            "interval_seconds": scheduler.interval_seconds,
            "passes_completed": scheduler.passes_completed,
            "passes_failed": scheduler.passes_failed,
            "ticks_skipped": scheduler.ticks_skipped,
            "last_finished_at": scheduler.last_finished_at.isoformat() if scheduler.last_finished_at else None,
        }
    return stats


@app.post("/api/scores/recalculate")
def recalculate_all_scores(request: Request, db: Session = Depends(get_db)):
    """
    Recompute scores for every active route now

    When the background scheduler is running the pass goes through it, so it
    never overlaps a scheduled pass. Returns 409 if a pass was already in
    flight when this request arrived.
    """
    scheduler = _get_scheduler(request)

    if scheduler is None:
        scores = recompute_all_scores(db)
    else:
        try:
            with log_failures("Score recalculation"):
                scores = scheduler.run_pass()
        except PassInProgressError:
            raise HTTPException(status_code=409, detail="Score calculation already in progress")

    return {"message": "Scores recalculated", "routes_scored": len(scores)}


@app.get("/api/routes/{route_id}/score")
def get_route_score(route_id: str, db: Session = Depends(get_db)):
    """
    Get the stored score for a route

    Args:
        route_id: Route identifier

    Returns:
        Route metadata plus its score (null if never calculated)
    """
    return get_route_score_detail(db, route_id)


@app.post("/api/routes/{route_id}/score/recalculate")
def recalculate_route_score(route_id: str, db: Session = Depends(get_db)):
    """Recompute and store the score for a single route"""
    return score_to_dict(calculate_route_score(db, route_id))


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


@app.get("/api/analytics/efficiency/{route_id}")
def get_route_efficiency(route_id: str, db: Session = Depends(get_db)):
    """
    Get the multi-factor efficiency score for a route

    Returns:
        Overall 0-100 efficiency, the six factors and improvement recommendations
    """
    with log_failures(f"Efficiency calculation for route {route_id}"):
        return calculate_route_efficiency(db, route_id).to_dict()


@app.post("/api/analytics/efficiency/bulk")
def get_bulk_efficiency(body: RouteIdsRequest, db: Session = Depends(get_db)):
    """Efficiency scores for several routes; unknown routes are skipped"""
    if not body.route_ids:
        raise HTTPException(status_code=400, detail="Route IDs array is required")

    with log_failures("Bulk efficiency calculation"):
        result = calculate_bulk_efficiency(db, body.route_ids)

    result["scores"] = [s.to_dict() for s in result["scores"]]
    return result


@app.post("/api/analytics/routes/compare")
def compare_route_efficiency(body: RouteIdsRequest, db: Session = Depends(get_db)):
    """Compare efficiency across at least two routes"""
    with log_failures("Route comparison"):
        result = compare_routes(db, body.route_ids)

    return {
        "comparisons": [s.to_dict() for s in result["comparisons"]],
        "best_route": result["best_route"].to_dict() if result["best_route"] else None,
        "worst_route": result["worst_route"].to_dict() if result["worst_route"] else None,
    }


@app.get("/api/analytics/travel-time")
def get_travel_time(
    route_id: str,
    from_stop: str,
    to_stop: str,
    time_of_day: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Predict travel time between two stops on a route

    Args:
        route_id: Route identifier
        from_stop: Boarding stop name
        to_stop: Alighting stop name
        time_of_day: Departure time in HH:MM format (optional)
    """
    with log_failures(f"Travel time prediction for route {route_id}"):
        return predict_travel_time(db, route_id, from_stop, to_stop, time_of_day=time_of_day).to_dict()


@app.get("/api/analytics/alternatives")
def get_alternatives(
    from_stop: str,
    to_stop: str,
    max_time: Optional[float] = None,
    max_cost: Optional[float] = None,
    db: Session = Depends(get_db),
):
    """Routes serving from_stop to to_stop, most efficient first"""
    with log_failures("Alternative route search"):
        alternatives = find_alternative_routes(db, from_stop, to_stop, max_time=max_time, max_cost=max_cost)
    return [a.to_dict() for a in alternatives]


@app.get("/api/analytics/trends/{route_id}")
def get_trends(route_id: str, period: str = "weekly", db: Session = Depends(get_db)):
    """
    Period-over-period trends for a route

    Args:
        route_id: Route identifier
        period: 'daily', 'weekly' or 'monthly' (default: weekly)
    """
    with log_failures(f"Trend analysis for route {route_id}"):
        return analyze_trends(db, route_id, period=period).to_dict()


@app.get("/api/analytics/demand/{route_id}")
def get_demand_forecast(route_id: str, time_slot: str, db: Session = Depends(get_db)):
    """Demand forecast for a route and time slot"""
    with log_failures(f"Demand forecast for route {route_id}"):
        return forecast_demand(db, route_id, time_slot).to_dict()


@app.get("/api/analytics/recommendations/{user_id}")
def get_user_recommendations(user_id: str, limit: int = 5, db: Session = Depends(get_db)):
    """Personalized route recommendations for a user"""
    with log_failures(f"Recommendations for user {user_id}"):
        return generate_user_recommendations(db, user_id, limit=limit).to_dict()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
