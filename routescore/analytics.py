"""
Analytics module for on-demand route metrics

Every function here pulls fresh route/report data and returns an ephemeral
result; nothing is persisted. Covered:
- Route efficiency (six weighted 0-100 factors)
- Travel time prediction between two stops
- Alternative routes for a stop pair
- Period-over-period trends
- Demand forecasting
- Bulk efficiency and route comparison
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from sqlalchemy.orm import Session

from routescore.clock import utcnow
from routescore.config import get_settings
from routescore.exceptions import InvalidInputError, RouteNotFoundError
from routescore.models import Report, Route
from routescore.repository import (
    get_route,
    group_reports_by_route,
    list_active_routes,
    list_reports,
)
from routescore.taxonomy import (
    ANALYTICS_STATUSES,
    COMFORT_DEFAULT_VALUE,
    COMFORT_SEVERITY_VALUES,
    EFFICIENCY_FACTOR_REPORT_TYPES,
    SAFETY_SEVERITY_PENALTIES,
    SPEED_DEFAULT_VALUE,
    SPEED_SEVERITY_VALUES,
    TRAVEL_TIME_DEFAULT_SEVERITY_VALUE,
    TRAVEL_TIME_REPORT_TYPES,
    TRAVEL_TIME_SEVERITY_VALUES,
    ReportType,
    Severity,
)

logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 30

EFFICIENCY_WEIGHTS = {
    "reliability": 0.25,
    "speed": 0.20,
    "safety": 0.25,
    "comfort": 0.15,
    "cost": 0.10,
    "frequency": 0.05,
}

# Factor values used when a route has no matching reports
FACTOR_BASELINES = {
    "reliability": 50.0,
    "speed": 60.0,
    "safety": 80.0,
    "comfort": 70.0,
}

# (factor, threshold, recommendation) - recommend when factor < threshold
EFFICIENCY_RECOMMENDATION_RULES = [
    ("reliability", 70, "Improve on-time performance through better scheduling"),
    ("speed", 60, "Optimize route to reduce travel time"),
    ("safety", 80, "Address safety concerns and improve driver training"),
    ("comfort", 70, "Upgrade vehicles and improve passenger comfort"),
    ("cost", 60, "Review fare structure for better value proposition"),
    ("frequency", 50, "Increase service frequency during peak hours"),
]

DEFAULT_FARE = 50.0
# Fares below the reference would push the cost factor past 100; it is capped there
REFERENCE_FARE = 30.0
DEFAULT_OPERATING_HOURS = 12.0

MINUTES_PER_STOP = 3
MIN_TRAVEL_MINUTES = 5
UNKNOWN_STOP_TRAVEL_MINUTES = 30
WEATHER_DELAY_FACTOR = 1.1  # Stub until a weather feed is wired in

TREND_PERIOD_DAYS = {"daily": 1, "weekly": 7, "monthly": 30}

REPORT_COLUMNS = ["report_id", "route_id", "report_type", "severity", "status", "created_at"]


def round_half_up(value: float, digits: int = 0):
    """Round .5 away from zero for positive values (built-in round() uses banker's rounding)"""
    factor = 10**digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def _serialize(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    return value


class _Result:
    def to_dict(self) -> dict:
        return _serialize(asdict(self))


@dataclass
class EfficiencyScore(_Result):
    route_id: str
    route_name: str
    efficiency_score: int
    factors: dict
    recommendations: list
    last_updated: datetime


@dataclass
class TravelTimePrediction(_Result):
    route_id: str
    from_stop: str
    to_stop: str
    predicted_time: int
    confidence: float
    factors: dict
    alternative_times: dict
    last_updated: datetime


@dataclass
class AlternativeRoute(_Result):
    route_id: str
    route_name: str
    total_time: int
    total_cost: float
    efficiency: int
    reasons: list
    stops: list


@dataclass
class TrendAnalysis(_Result):
    route_id: str
    period: str
    trends: dict
    insights: list
    last_updated: datetime


@dataclass
class DemandForecast(_Result):
    route_id: str
    time_slot: str
    predicted_demand: int
    confidence: float
    factors: dict
    recommendations: list
    last_updated: datetime


@dataclass(frozen=True)
class RouteProfile:
    """Detached snapshot of the route columns the analytics need"""

    route_id: str
    name: str
    fare: Optional[float]
    operating_start: Optional[str]
    operating_end: Optional[str]
    stop_names: tuple = field(default_factory=tuple)

    @classmethod
    def from_model(cls, route: Route) -> "RouteProfile":
        return cls(
            route_id=route.route_id,
            name=route.name,
            fare=route.fare,
            operating_start=route.operating_start,
            operating_end=route.operating_end,
            stop_names=tuple(route.stop_names),
        )

    @property
    def effective_fare(self) -> float:
        return self.fare or DEFAULT_FARE


def reports_frame(reports: Iterable[Report]) -> pd.DataFrame:
    """Convert Report rows to a DataFrame detached from the session"""
    rows = [
        {
            "report_id": r.id,
            "route_id": r.route_id,
            "report_type": r.report_type,
            "severity": r.severity,
            "status": r.status,
            "created_at": r.created_at,
        }
        for r in reports
    ]
    frame = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    frame["created_at"] = pd.to_datetime(frame["created_at"])
    return frame


def _window(frame: pd.DataFrame, start: datetime, end: datetime) -> pd.DataFrame:
    mask = (frame["created_at"] >= pd.Timestamp(start)) & (frame["created_at"] < pd.Timestamp(end))
    return frame[mask]


def _parse_clock_time(value: str) -> tuple[int, int]:
    """Parse 'HH:MM' (or 'H:MM') into (hour, minute)"""
    try:
        hour_text, minute_text = value.strip().split(":")[:2]
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError) as e:
        raise InvalidInputError(f"Invalid time '{value}'. Use HH:MM format (e.g., '08:30')") from e

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidInputError(f"Invalid time '{value}'. Use HH:MM format (e.g., '08:30')")
    return hour, minute


# ---------------------------------------------------------------------------
# Route efficiency
# ---------------------------------------------------------------------------


def operating_span_hours(start: Optional[str], end: Optional[str]) -> float:
    """
    Length of the service day in hours

    Spans that end at or before they start wrap past midnight. Missing or
    malformed hours fall back to a 12 hour day.
    """
    if not start or not end:
        return DEFAULT_OPERATING_HOURS

    try:
        start_hour, start_minute = _parse_clock_time(start)
        end_hour, end_minute = _parse_clock_time(end)
    except InvalidInputError:
        logger.warning("Unparseable operating hours %r-%r, using default", start, end)
        return DEFAULT_OPERATING_HOURS

    span_minutes = (end_hour * 60 + end_minute) - (start_hour * 60 + start_minute)
    if span_minutes <= 0:
        span_minutes += 24 * 60
    return span_minutes / 60


def calculate_cost_factor(fare: float) -> float:
    return min(100.0, max(0.0, 100 - (fare - REFERENCE_FARE) * 2))


def calculate_frequency_factor(span_hours: float) -> float:
    return min(100.0, span_hours * 2)


def calculate_efficiency_factors(profile: RouteProfile, frame: pd.DataFrame) -> dict:
    """
    Compute the six 0-100 efficiency factors (unrounded)

    Args:
        profile: Route snapshot
        frame: Reports for the route inside the lookback window

    Returns:
        Dictionary keyed by factor name
    """
    factors = dict(FACTOR_BASELINES)

    reliability = frame[frame["report_type"].isin(EFFICIENCY_FACTOR_REPORT_TYPES["reliability"])]
    if not reliability.empty:
        factors["reliability"] = float((reliability["severity"] == Severity.LOW.value).mean() * 100)

    speed = frame[frame["report_type"].isin(EFFICIENCY_FACTOR_REPORT_TYPES["speed"])]
    if not speed.empty:
        values = speed["severity"].map(SPEED_SEVERITY_VALUES).fillna(SPEED_DEFAULT_VALUE)
        factors["speed"] = float(np.mean(values))

    safety = frame[frame["report_type"].isin(EFFICIENCY_FACTOR_REPORT_TYPES["safety"])]
    if not safety.empty:
        penalties = safety["severity"].map(SAFETY_SEVERITY_PENALTIES).fillna(
            SAFETY_SEVERITY_PENALTIES[Severity.LOW.value]
        )
        factors["safety"] = float(100 - np.mean(penalties))

    comfort = frame[frame["report_type"].isin(EFFICIENCY_FACTOR_REPORT_TYPES["comfort"])]
    if not comfort.empty:
        values = comfort["severity"].map(COMFORT_SEVERITY_VALUES).fillna(COMFORT_DEFAULT_VALUE)
        factors["comfort"] = float(np.mean(values))

    factors["cost"] = calculate_cost_factor(profile.effective_fare)
    factors["frequency"] = calculate_frequency_factor(
        operating_span_hours(profile.operating_start, profile.operating_end)
    )
    return factors


def weighted_efficiency(factors: dict) -> float:
    """Weighted sum of the six factors (weights sum to 1.0)"""
    return sum(factors[name] * weight for name, weight in EFFICIENCY_WEIGHTS.items())


def generate_efficiency_recommendations(factors: dict) -> list[str]:
    return [message for name, threshold, message in EFFICIENCY_RECOMMENDATION_RULES if factors[name] < threshold]


def compute_efficiency(profile: RouteProfile, frame: pd.DataFrame, now: datetime) -> EfficiencyScore:
    """Efficiency for a route from already-windowed reports (no database access)"""
    factors = calculate_efficiency_factors(profile, frame)

    return EfficiencyScore(
        route_id=profile.route_id,
        route_name=profile.name,
        efficiency_score=round_half_up(weighted_efficiency(factors)),
        factors={name: round_half_up(value) for name, value in factors.items()},
        recommendations=generate_efficiency_recommendations(factors),
        last_updated=now,
    )


def calculate_route_efficiency(db: Session, route_id: str, now: Optional[datetime] = None) -> EfficiencyScore:
    """
    Calculate the multi-factor efficiency score for a route

    Uses the trailing 30 days of non-dismissed reports.

    Args:
        db: Database session
        route_id: Route identifier
        now: End of the lookback window (default: current UTC time)

    Returns:
        EfficiencyScore with rounded factors and recommendations

    Raises:
        RouteNotFoundError: the route does not exist
    """
    now = now or utcnow()
    profile = RouteProfile.from_model(get_route(db, route_id))

    reports = list_reports(
        db,
        route_id=route_id,
        statuses=ANALYTICS_STATUSES,
        created_after=now - timedelta(days=LOOKBACK_DAYS),
        created_before=now,
    )
    return compute_efficiency(profile, reports_frame(reports), now)


def efficiency_for_routes(
    db: Session,
    routes: list[Route],
    now: datetime,
    max_workers: Optional[int] = None,
) -> dict[str, EfficiencyScore]:
    """
    Efficiency for many routes at once

    Reports for all routes are loaded in a single query, then each route is
    scored on a bounded thread pool. Workers only see detached snapshots.
    """
    if not routes:
        return {}

    profiles = [RouteProfile.from_model(route) for route in routes]
    reports = list_reports(
        db,
        route_ids=[p.route_id for p in profiles],
        statuses=ANALYTICS_STATUSES,
        created_after=now - timedelta(days=LOOKBACK_DAYS),
        created_before=now,
    )
    grouped = group_reports_by_route(reports)
    frames = {p.route_id: reports_frame(grouped.get(p.route_id, [])) for p in profiles}

    max_workers = max_workers or get_settings().analytics_max_workers
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = executor.map(lambda p: compute_efficiency(p, frames[p.route_id], now), profiles)
        return {result.route_id: result for result in results}


def calculate_bulk_efficiency(db: Session, route_ids: list[str], now: Optional[datetime] = None) -> dict:
    """
    Efficiency scores for a list of routes

    Unknown route ids are logged and left out of the result.

    Returns:
        Dictionary with scores (list of EfficiencyScore), count and total
    """
    now = now or utcnow()
    routes = []
    for route_id in route_ids:
        try:
            routes.append(get_route(db, route_id))
        except RouteNotFoundError:
            logger.warning("Skipping efficiency for unknown route %s", route_id, extra={"route_id": route_id})

    by_route = efficiency_for_routes(db, routes, now)
    scores = [by_route[route.route_id] for route in routes]
    return {"scores": scores, "count": len(scores), "total": len(route_ids)}


def compare_routes(db: Session, route_ids: list[str], now: Optional[datetime] = None) -> dict:
    """
    Compare the efficiency of two or more routes

    Returns:
        Dictionary with comparisons sorted best first, plus best_route and worst_route

    Raises:
        InvalidInputError: fewer than two route ids were given
    """
    if len(route_ids) < 2:
        raise InvalidInputError("At least 2 route IDs are required for comparison")

    bulk = calculate_bulk_efficiency(db, route_ids, now=now)
    comparisons = sorted(bulk["scores"], key=lambda s: (-s.efficiency_score, s.route_id))

    return {
        "comparisons": comparisons,
        "best_route": comparisons[0] if comparisons else None,
        "worst_route": comparisons[-1] if comparisons else None,
    }


# ---------------------------------------------------------------------------
# Travel time
# ---------------------------------------------------------------------------


def calculate_base_travel_time(stop_names: Iterable[str], from_stop: str, to_stop: str) -> int:
    """Three minutes per stop between the pair, at least five; 30 if either stop is not on the route"""
    stop_names = list(stop_names)
    if from_stop not in stop_names or to_stop not in stop_names:
        return UNKNOWN_STOP_TRAVEL_MINUTES

    stop_count = stop_names.index(to_stop) - stop_names.index(from_stop)
    return max(MIN_TRAVEL_MINUTES, stop_count * MINUTES_PER_STOP)


def get_time_of_day_multiplier(hour: Optional[int]) -> float:
    if hour is None:
        return 1.0
    if 7 <= hour <= 9:
        return 1.3  # Morning rush
    if 17 <= hour <= 19:
        return 1.4  # Evening rush
    if hour >= 22 or hour <= 5:
        return 0.8  # Night
    return 1.0


def get_day_of_week_multiplier(moment: datetime) -> float:
    return 0.9 if moment.weekday() >= 5 else 1.0


def get_weather_factor() -> float:
    return WEATHER_DELAY_FACTOR


def get_traffic_factor(hour: Optional[int]) -> float:
    if hour is None:
        return 1.0
    if 7 <= hour <= 9:
        return 1.2
    if 17 <= hour <= 19:
        return 1.3
    return 1.0


def calculate_historical_factor(severities: Iterable[str]) -> float:
    """Scale from the average severity of recent delay/breakdown reports"""
    values = [
        TRAVEL_TIME_SEVERITY_VALUES.get(severity, TRAVEL_TIME_DEFAULT_SEVERITY_VALUE) for severity in severities
    ]
    if not values:
        return 1.0
    return max(0.8, 2.0 - float(np.mean(values)))


def predict_travel_time(
    db: Session,
    route_id: str,
    from_stop: str,
    to_stop: str,
    time_of_day: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TravelTimePrediction:
    """
    Predict travel time in minutes between two stops on a route

    Args:
        db: Database session
        route_id: Route identifier
        from_stop: Boarding stop name
        to_stop: Alighting stop name
        time_of_day: Departure time in HH:MM format (optional)
        now: Reference time for the day-of-week factor and report window

    Returns:
        TravelTimePrediction with multipliers and optimistic/realistic/pessimistic times

    Raises:
        RouteNotFoundError: the route does not exist
        InvalidInputError: time_of_day is not HH:MM
    """
    now = now or utcnow()
    hour = _parse_clock_time(time_of_day)[0] if time_of_day else None
    route = get_route(db, route_id)

    reports = list_reports(
        db,
        route_id=route_id,
        statuses=ANALYTICS_STATUSES,
        report_types=TRAVEL_TIME_REPORT_TYPES,
        created_after=now - timedelta(days=LOOKBACK_DAYS),
        created_before=now,
    )

    base_time = calculate_base_travel_time(route.stop_names, from_stop, to_stop)
    factors = {
        "time_of_day": get_time_of_day_multiplier(hour),
        "day_of_week": get_day_of_week_multiplier(now),
        "weather": get_weather_factor(),
        "traffic": get_traffic_factor(hour),
        "historical": calculate_historical_factor(r.severity for r in reports),
    }

    predicted_time = round_half_up(base_time * math.prod(factors.values()))
    confidence = min(95, 50 + len(reports) * 2)

    return TravelTimePrediction(
        route_id=route_id,
        from_stop=from_stop,
        to_stop=to_stop,
        predicted_time=predicted_time,
        confidence=confidence,
        factors=factors,
        alternative_times={
            "optimistic": round_half_up(predicted_time * 0.8),
            "realistic": predicted_time,
            "pessimistic": round_half_up(predicted_time * 1.3),
        },
        last_updated=now,
    )


# ---------------------------------------------------------------------------
# Alternative routes
# ---------------------------------------------------------------------------


def generate_alternative_reasons(stop_count: int, travel_time: int, cost: float, efficiency: int) -> list[str]:
    reasons = []
    if efficiency > 80:
        reasons.append("Highly efficient route")
    if travel_time < 20:
        reasons.append("Fast travel time")
    if cost < 40:
        reasons.append("Affordable fare")
    if stop_count > 5:
        reasons.append("Multiple stops available")
    return reasons


def find_alternative_routes(
    db: Session,
    from_stop: str,
    to_stop: str,
    max_time: Optional[float] = None,
    max_cost: Optional[float] = None,
    now: Optional[datetime] = None,
) -> list[AlternativeRoute]:
    """
    Find active routes that travel from from_stop to to_stop

    A route qualifies only if both stops are on it and from_stop comes first.

    Args:
        db: Database session
        from_stop: Boarding stop name
        to_stop: Alighting stop name
        max_time: Drop routes whose base travel time exceeds this (minutes)
        max_cost: Drop routes whose fare exceeds this
        now: End of the efficiency lookback window

    Returns:
        Candidates sorted by efficiency (highest first), ties by route_id
    """
    now = now or utcnow()

    candidates = []
    for route in list_active_routes(db):
        stop_names = route.stop_names
        if from_stop not in stop_names or to_stop not in stop_names:
            continue

        from_index = stop_names.index(from_stop)
        to_index = stop_names.index(to_stop)
        if from_index >= to_index:
            continue

        travel_time = calculate_base_travel_time(stop_names, from_stop, to_stop)
        cost = route.fare or DEFAULT_FARE

        if max_time is not None and travel_time > max_time:
            continue
        if max_cost is not None and cost > max_cost:
            continue

        candidates.append((route, travel_time, cost, stop_names[from_index : to_index + 1]))

    efficiencies = efficiency_for_routes(db, [route for route, _, _, _ in candidates], now)

    alternatives = []
    for route, travel_time, cost, stops in candidates:
        efficiency = efficiencies[route.route_id].efficiency_score
        alternatives.append(
            AlternativeRoute(
                route_id=route.route_id,
                route_name=route.name,
                total_time=travel_time,
                total_cost=cost,
                efficiency=efficiency,
                reasons=generate_alternative_reasons(len(route.stops), travel_time, cost, efficiency),
                stops=stops,
            )
        )

    alternatives.sort(key=lambda a: (-a.efficiency, a.route_id))
    return alternatives


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------


def percent_change(current: float, previous: float) -> float:
    """Percent change from previous to current; 0 when there is no previous value"""
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def _label(change: float, threshold: float, up: str, down: str) -> str:
    if change > threshold:
        return up
    if change < -threshold:
        return down
    return "stable"


def generate_trend_insights(ridership_change: float, efficiency_change: float, safety_change: float) -> list[str]:
    insights = []

    if ridership_change > 10:
        insights.append("Ridership is increasing significantly")
    elif ridership_change < -10:
        insights.append("Ridership is declining, consider promotional activities")

    if efficiency_change > 5:
        insights.append("Route efficiency is improving")
    elif efficiency_change < -5:
        insights.append("Route efficiency needs attention")

    if safety_change < -10:
        insights.append("Safety incidents have decreased")
    elif safety_change > 10:
        insights.append("Safety concerns are increasing")

    return insights


def analyze_trends(db: Session, route_id: str, period: str = "weekly", now: Optional[datetime] = None) -> TrendAnalysis:
    """
    Compare the current window with the equally long window before it

    Ridership is approximated by report volume. Previous efficiency is the
    efficiency score computed over the 30 days before the current window
    starts. Fare history is not tracked, so cost never changes.

    Args:
        db: Database session
        route_id: Route identifier
        period: 'daily', 'weekly' or 'monthly'
        now: End of the current window (default: current UTC time)

    Raises:
        RouteNotFoundError: the route does not exist
        InvalidInputError: unknown period
    """
    if period not in TREND_PERIOD_DAYS:
        raise InvalidInputError("Period must be daily, weekly, or monthly")

    now = now or utcnow()
    profile = RouteProfile.from_model(get_route(db, route_id))

    length = timedelta(days=TREND_PERIOD_DAYS[period])
    start = now - length
    previous_start = start - length
    lookback = timedelta(days=LOOKBACK_DAYS)

    reports = list_reports(
        db,
        route_id=route_id,
        statuses=ANALYTICS_STATUSES,
        created_after=min(previous_start, start - lookback),
        created_before=now,
    )
    frame = reports_frame(reports)

    current = _window(frame, start, now)
    previous = _window(frame, previous_start, start)

    current_ridership = len(current)
    previous_ridership = len(previous)
    ridership_change = percent_change(current_ridership, previous_ridership)

    current_efficiency = compute_efficiency(profile, _window(frame, now - lookback, now), now).efficiency_score
    previous_efficiency = compute_efficiency(profile, _window(frame, start - lookback, start), start).efficiency_score
    efficiency_change = percent_change(current_efficiency, previous_efficiency)

    current_safety = int((current["report_type"] == ReportType.SAFETY.value).sum())
    previous_safety = int((previous["report_type"] == ReportType.SAFETY.value).sum())
    safety_change = percent_change(current_safety, previous_safety)

    current_cost = profile.effective_fare
    cost_change = 0.0

    trends = {
        "ridership": {
            "current": current_ridership,
            "previous": previous_ridership,
            "change": round_half_up(ridership_change, 2),
            "trend": _label(ridership_change, 5, "increasing", "decreasing"),
        },
        "efficiency": {
            "current": current_efficiency,
            "previous": previous_efficiency,
            "change": round_half_up(efficiency_change, 2),
            "trend": _label(efficiency_change, 5, "improving", "declining"),
        },
        "safety": {
            "current": current_safety,
            "previous": previous_safety,
            "change": round_half_up(safety_change, 2),
            # Fewer safety reports is the good direction
            "trend": _label(safety_change, 10, "riskier", "safer"),
        },
        "cost": {
            "current": current_cost,
            "previous": current_cost,
            "change": cost_change,
            "trend": _label(cost_change, 5, "increasing", "decreasing"),
        },
    }

    return TrendAnalysis(
        route_id=route_id,
        period=period,
        trends=trends,
        insights=generate_trend_insights(ridership_change, efficiency_change, safety_change),
        last_updated=now,
    )


# ---------------------------------------------------------------------------
# Demand
# ---------------------------------------------------------------------------


def calculate_historical_demand(report_count: int) -> float:
    """Report volume as a 0-100 demand proxy"""
    return float(min(100, report_count * 2))


def get_weather_demand_factor() -> float:
    return 1.0


def get_event_factor() -> float:
    return 1.0


def get_seasonality_factor(moment: datetime) -> float:
    if 3 <= moment.month <= 5:
        return 1.1
    if 10 <= moment.month <= 12:
        return 1.05
    return 1.0


def generate_demand_recommendations(demand: float) -> list[str]:
    if demand > 80:
        return ["Consider increasing frequency during this time"]
    if demand < 30:
        return ["Low demand period, consider reducing frequency"]
    return []


def forecast_demand(db: Session, route_id: str, time_slot: str, now: Optional[datetime] = None) -> DemandForecast:
    """
    Forecast 0-100 demand for a route and time slot

    Raises:
        RouteNotFoundError: the route does not exist
    """
    now = now or utcnow()
    get_route(db, route_id)

    reports = list_reports(
        db,
        route_id=route_id,
        statuses=ANALYTICS_STATUSES,
        created_after=now - timedelta(days=LOOKBACK_DAYS),
        created_before=now,
    )

    historical = calculate_historical_demand(len(reports))
    factors = {
        "historical": historical,
        "weather": get_weather_demand_factor(),
        "events": get_event_factor(),
        "seasonality": get_seasonality_factor(now),
    }

    demand = historical * factors["weather"] * factors["events"] * factors["seasonality"]
    demand = min(100.0, max(0.0, demand))

    return DemandForecast(
        route_id=route_id,
        time_slot=time_slot,
        predicted_demand=round_half_up(demand),
        confidence=min(95, 60 + len(reports) * 1.5),
        factors=factors,
        recommendations=generate_demand_recommendations(demand),
        last_updated=now,
    )
