"""
Aggregation functions for the scores API

These functions shape stored Score rows into JSON-friendly dictionaries for
the dashboard. Scores themselves are written by the scoring job
(pipelines/compute_route_scores.py or the in-process scheduler).
"""

import math
from typing import Optional

from sqlalchemy.orm import Session

from routescore.models import Route, Score
from routescore.repository import get_route, get_score


def sanitize_float(value):
    """
    Convert float value to None if it's NaN or Infinity

    Args:
        value: Float value to sanitize

    Returns:
        None if value is NaN/Infinity, otherwise the float value
    """
    if value is None:
        return None
    try:
        float_value = float(value)
        if math.isnan(float_value) or math.isinf(float_value):
            return None
        return float_value
    except (ValueError, TypeError):
        return None


def calculate_score_grade(overall: Optional[float], total_reports: int = 1) -> str:
    """
    Calculate letter grade from an overall 0-5 score

    Args:
        overall: Overall composite score
        total_reports: Reports behind the score; a score with none is ungraded

    Returns:
        Letter grade: A (>=4), B (3-4), C (2-3), D (1-2), F (<1), N/A without data
    """
    if overall is None or not total_reports:
        return "N/A"
    if overall >= 4:
        return "A"
    elif overall >= 3:
        return "B"
    elif overall >= 2:
        return "C"
    elif overall >= 1:
        return "D"
    else:
        return "F"


def score_to_dict(score: Score) -> dict:
    return {
        "route_id": score.route_id,
        "reliability": sanitize_float(score.reliability),
        "safety": sanitize_float(score.safety),
        "punctuality": sanitize_float(score.punctuality),
        "comfort": sanitize_float(score.comfort),
        "overall": sanitize_float(score.overall),
        "total_reports": score.total_reports,
        "grade": calculate_score_grade(score.overall, score.total_reports),
        "last_calculated": score.last_calculated.isoformat() if score.last_calculated else None,
    }


def get_all_routes_scorecard(db: Session, limit: Optional[int] = None) -> list[dict]:
    """
    Get the score card for all active routes

    Routes that have never been scored are included with null scores.

    Args:
        db: Database session
        limit: Maximum number of entries (default: all)

    Returns:
        Route summaries sorted by overall score, best first, unscored last
    """
    routes = db.query(Route).filter(Route.is_active.is_(True)).all()
    scores = {s.route_id: s for s in db.query(Score).all()}

    scorecard = []
    for route in routes:
        score = scores.get(route.route_id)
        if score:
            entry = score_to_dict(score)
        else:
            entry = {
                "route_id": route.route_id,
                "reliability": None,
                "safety": None,
                "punctuality": None,
                "comfort": None,
                "overall": None,
                "total_reports": 0,
                "grade": "N/A",
                "last_calculated": None,
            }
        entry["route_name"] = route.name
        entry["operator"] = route.operator
        scorecard.append(entry)

    # Sort by overall descending, None values last
    scorecard.sort(key=lambda x: (x["overall"] is None, -(x["overall"] or 0), x["route_id"]))

    if limit is not None:
        scorecard = scorecard[:limit]
    return scorecard


def get_route_score_detail(db: Session, route_id: str) -> dict:
    """
    Get the stored score and route metadata for one route

    Raises:
        RouteNotFoundError: the route does not exist
    """
    route = get_route(db, route_id)
    score = get_score(db, route_id)

    return {
        "route_id": route.route_id,
        "route_name": route.name,
        "operator": route.operator,
        "fare": sanitize_float(route.fare),
        "stops": route.stop_names,
        "score": score_to_dict(score) if score else None,
    }
