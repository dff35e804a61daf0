"""
Personalized route recommendations

Every active route's efficiency factors are blended with a user's preference
vector into a 0-100 recommendation score. Only routes scoring above 60 are
recommended.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from routescore.analytics import efficiency_for_routes, round_half_up
from routescore.clock import utcnow
from routescore.models import Report
from routescore.repository import list_active_routes, list_reports

logger = logging.getLogger(__name__)

MIN_RECOMMENDATION_SCORE = 60
DEFAULT_LIMIT = 5


@dataclass(frozen=True)
class PreferenceVector:
    efficiency: float = 0.3
    safety: float = 0.3
    cost: float = 0.2
    convenience: float = 0.2

    def to_dict(self) -> dict:
        return asdict(self)


class PreferenceStrategy(ABC):
    """Derives a PreferenceVector from a user's report history"""

    @abstractmethod
    def derive(self, user_reports: list[Report]) -> PreferenceVector:
        """Preference weights for a user given their reports"""


class ConstantPreferenceStrategy(PreferenceStrategy):
    """Same preferences for everyone regardless of history"""

    def __init__(self, preferences: Optional[PreferenceVector] = None):
        self.preferences = preferences or PreferenceVector()

    def derive(self, user_reports: list[Report]) -> PreferenceVector:
        return self.preferences


@dataclass
class Recommendation:
    route_id: str
    route_name: str
    reason: str
    score: int
    type: str


@dataclass
class UserRecommendation:
    user_id: str
    recommendations: list[Recommendation]
    preferences: PreferenceVector
    last_updated: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "recommendations": [asdict(r) for r in self.recommendations],
            "preferences": self.preferences.to_dict(),
            "last_updated": self.last_updated.isoformat(),
        }


def calculate_recommendation_score(factors: dict, preferences: PreferenceVector) -> float:
    """Preference-weighted blend of rounded efficiency factors"""
    return (
        factors["reliability"] * preferences.efficiency
        + factors["safety"] * preferences.safety
        + (100 - factors["cost"]) * preferences.cost
        + factors["comfort"] * preferences.convenience
    )


def generate_recommendation_reason(factors: dict) -> str:
    if factors["safety"] > 85:
        return "High safety rating"
    if factors["reliability"] > 85:
        return "Very reliable service"
    if factors["cost"] < 40:
        return "Great value for money"
    return "Good overall performance"


def get_recommendation_type(factors: dict) -> str:
    """Strongest of efficiency/safety/cost/convenience; ties go to the later one"""
    candidates = {
        "efficiency": factors["reliability"],
        "safety": factors["safety"],
        "cost": 100 - factors["cost"],
        "convenience": factors["comfort"],
    }
    best_type, best_value = None, None
    for name, value in candidates.items():
        if best_value is None or value >= best_value:
            best_type, best_value = name, value
    return best_type


def generate_user_recommendations(
    db: Session,
    user_id: str,
    limit: int = DEFAULT_LIMIT,
    strategy: Optional[PreferenceStrategy] = None,
    now: Optional[datetime] = None,
) -> UserRecommendation:
    """
    Recommend routes for a user

    Args:
        db: Database session
        user_id: User identifier
        limit: Maximum number of recommendations
        strategy: Preference derivation (default: ConstantPreferenceStrategy)
        now: End of the efficiency lookback window

    Returns:
        UserRecommendation with recommendations sorted by score, highest first
    """
    now = now or utcnow()
    strategy = strategy or ConstantPreferenceStrategy()

    user_reports = list_reports(db, user_id=user_id)
    preferences = strategy.derive(user_reports)

    routes = list_active_routes(db)
    efficiencies = efficiency_for_routes(db, routes, now)

    recommendations = []
    for route in routes:
        factors = efficiencies[route.route_id].factors
        score = calculate_recommendation_score(factors, preferences)
        if score <= MIN_RECOMMENDATION_SCORE:
            continue

        recommendations.append(
            Recommendation(
                route_id=route.route_id,
                route_name=route.name,
                reason=generate_recommendation_reason(factors),
                score=round_half_up(score),
                type=get_recommendation_type(factors),
            )
        )

    recommendations.sort(key=lambda r: (-r.score, r.route_id))
    logger.debug("Generated %d recommendations for user %s", len(recommendations), user_id)

    return UserRecommendation(
        user_id=user_id,
        recommendations=recommendations[:limit],
        preferences=preferences,
        last_updated=now,
    )
