"""
Read/write helpers around the SQLAlchemy models

The scoring and analytics modules only talk to the database through these
functions.
"""

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from routescore.clock import utcnow
from routescore.exceptions import RouteNotFoundError
from routescore.models import Report, Route, Score


def list_reports(
    db: Session,
    route_id: Optional[str] = None,
    statuses: Optional[Iterable[str]] = None,
    created_after: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    user_id: Optional[str] = None,
    report_types: Optional[Iterable[str]] = None,
    route_ids: Optional[Iterable[str]] = None,
) -> list[Report]:
    """
    Fetch reports matching all of the given filters

    Args:
        db: Database session
        route_id: Only reports for this route
        statuses: Only reports whose status is in this collection
        created_after: Inclusive lower bound on created_at
        created_before: Exclusive upper bound on created_at
        user_id: Only reports submitted by this user
        report_types: Only reports whose type is in this collection
        route_ids: Only reports for any of these routes

    Returns:
        Reports ordered by created_at, then id
    """
    query = db.query(Report)

    if route_id is not None:
        query = query.filter(Report.route_id == route_id)
    if route_ids is not None:
        query = query.filter(Report.route_id.in_(list(route_ids)))
    if statuses is not None:
        query = query.filter(Report.status.in_(list(statuses)))
    if created_after is not None:
        query = query.filter(Report.created_at >= created_after)
    if created_before is not None:
        query = query.filter(Report.created_at < created_before)
    if user_id is not None:
        query = query.filter(Report.user_id == user_id)
    if report_types is not None:
        query = query.filter(Report.report_type.in_(list(report_types)))

    return query.order_by(Report.created_at, Report.id).all()


def group_reports_by_route(reports: Iterable[Report]) -> dict[str, list[Report]]:
    grouped = defaultdict(list)
    for report in reports:
        grouped[report.route_id].append(report)
    return grouped


def get_route(db: Session, route_id: str) -> Route:
    """Return the route or raise RouteNotFoundError"""
    route = (
        db.query(Route)
        .options(selectinload(Route.stops))
        .filter(Route.route_id == route_id)
        .first()
    )
    if route is None:
        raise RouteNotFoundError(route_id)
    return route


def list_active_routes(db: Session) -> list[Route]:
    return (
        db.query(Route)
        .options(selectinload(Route.stops))
        .filter(Route.is_active.is_(True))
        .order_by(Route.route_id)
        .all()
    )


def get_score(db: Session, route_id: str) -> Optional[Score]:
    return db.query(Score).filter(Score.route_id == route_id).first()


def upsert_score(db: Session, route_id: str, values: dict) -> Score:
    """
    Create or update the Score row for a route and commit

    Args:
        db: Database session
        route_id: Route the score belongs to
        values: Column values (reliability, safety, punctuality, comfort,
            overall, total_reports, last_calculated)

    Returns:
        The persisted Score
    """
    score = get_score(db, route_id)

    if score:
        for key, value in values.items():
            setattr(score, key, value)
        score.updated_at = utcnow()
    else:
        score = Score(route_id=route_id, **values)
        db.add(score)

    db.commit()
    db.refresh(score)
    return score
