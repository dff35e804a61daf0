"""
Route score aggregation

Turns a route's verified/resolved reports into four 0-5 composite scores
(reliability, safety, punctuality, comfort) and their mean. Every route
starts from a perfect 5 and each report subtracts from the sub-scores its
type affects, scaled by severity:

    impact = -severity_weight * 0.5
    accumulator[sub_score] += impact * type_weight[sub_score]
    score = clamp(5 + accumulator, 0, 5)

A route with no qualifying reports gets an all-zero score.
"""

import logging
import time
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from routescore.clock import utcnow
from routescore.models import Report, Route, Score
from routescore.repository import get_route, list_active_routes, list_reports, upsert_score
from routescore.taxonomy import (
    DEFAULT_SEVERITY_WEIGHT,
    SCORE_TYPE_WEIGHTS,
    SCORED_STATUSES,
    SEVERITY_WEIGHTS,
    SUB_SCORES,
    UNKNOWN_TYPE_WEIGHTS,
)

logger = logging.getLogger(__name__)

MAX_SCORE = 5.0
IMPACT_PER_SEVERITY_POINT = 0.5


def normalize_score(accumulator: float) -> float:
    """Shift an accumulated (non-positive) impact onto the 0-5 scale"""
    return max(0.0, min(MAX_SCORE, MAX_SCORE + accumulator))


def compute_score_values(reports: Iterable[Report]) -> dict:
    """
    Compute composite score columns from a set of qualifying reports

    Args:
        reports: Reports already filtered to the scored statuses

    Returns:
        Dictionary with reliability, safety, punctuality, comfort, overall
        and total_reports
    """
    reports = list(reports)

    if not reports:
        values = {name: 0.0 for name in SUB_SCORES}
        values["overall"] = 0.0
        values["total_reports"] = 0
        return values

    accumulators = {name: 0.0 for name in SUB_SCORES}

    for report in reports:
        severity_weight = SEVERITY_WEIGHTS.get(report.severity, DEFAULT_SEVERITY_WEIGHT)
        type_weights = SCORE_TYPE_WEIGHTS.get(report.report_type, UNKNOWN_TYPE_WEIGHTS)

        impact = -severity_weight * IMPACT_PER_SEVERITY_POINT
        for name, weight in type_weights.items():
            accumulators[name] += impact * weight

    values = {name: normalize_score(accumulators[name]) for name in SUB_SCORES}
    values["overall"] = sum(values[name] for name in SUB_SCORES) / len(SUB_SCORES)
    values["total_reports"] = len(reports)
    return values


def calculate_route_score(db: Session, route_id: str) -> Score:
    """
    Recompute and persist the composite score for one route

    Args:
        db: Database session
        route_id: Route identifier

    Returns:
        The upserted Score

    Raises:
        RouteNotFoundError: the route does not exist
    """
    get_route(db, route_id)

    reports = list_reports(db, route_id=route_id, statuses=SCORED_STATUSES)
    values = compute_score_values(reports)
    values["last_calculated"] = utcnow()

    return upsert_score(db, route_id, values)


def recompute_all_scores(db: Session) -> list[Score]:
    """
    Recompute scores for every active route

    A failure on one route is logged and the pass moves on to the next route.

    Returns:
        Scores written during this pass
    """
    batch_start = time.time()
    routes = list_active_routes(db)
    logger.info("Starting score calculation for %d active routes", len(routes))

    results = []
    failed = 0
    for route in routes:
        try:
            results.append(calculate_route_score(db, route.route_id))
        except Exception:
            failed += 1
            db.rollback()
            logger.exception(
                "Error calculating score for route %s", route.route_id, extra={"route_id": route.route_id}
            )

    duration = time.time() - batch_start
    logger.info(
        "Score calculation completed for %d routes (%d failed) in %.2fs",
        len(results),
        failed,
        duration,
        extra={"duration_seconds": round(duration, 3)},
    )

    if results:
        top = sorted(results, key=lambda s: (-s.overall, s.route_id))[:5]
        logger.info(
            "Top performing routes: %s",
            ", ".join(f"{s.route_id}: {s.overall:.2f}" for s in top),
        )

    return results


def get_scoring_stats(db: Session) -> dict:
    """Summary counters for the scoring job"""
    total_routes = db.query(Route).filter(Route.is_active.is_(True)).count()
    scored_routes = db.query(Score).count()
    total_reports = db.query(Report).filter(Report.status.in_(SCORED_STATUSES)).count()
    average_score = db.query(func.avg(Score.overall)).scalar()

    return {
        "total_routes": total_routes,
        "scored_routes": scored_routes,
        "total_reports": total_reports,
        "average_score": float(average_score) if average_score is not None else 0.0,
        "last_calculated": db.query(func.max(Score.last_calculated)).scalar(),
    }


def get_top_scores(db: Session, limit: int = 10) -> list[Score]:
    return db.query(Score).order_by(Score.overall.desc(), Score.route_id).limit(limit).all()


def get_worst_scores(db: Session, limit: int = 10) -> list[Score]:
    return db.query(Score).order_by(Score.overall.asc(), Score.route_id).limit(limit).all()
