"""
Report taxonomy and per-consumer mapping tables

Reports carry exactly one canonical ReportType. Each consumer that needs to
bucket reports (score aggregation, efficiency factors, travel-time history)
owns a separately named table below instead of matching on free-form
category strings.
"""

from enum import Enum


class ReportType(str, Enum):
    DELAY = "delay"
    SAFETY = "safety"
    CROWDING = "crowding"
    BREAKDOWN = "breakdown"
    OTHER = "other"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReportStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


SUB_SCORES = ("reliability", "safety", "punctuality", "comfort")

# Reports that feed the composite score
SCORED_STATUSES = (ReportStatus.VERIFIED.value, ReportStatus.RESOLVED.value)

# Reports considered by the on-demand analytics (everything a moderator has not rejected)
ANALYTICS_STATUSES = (
    ReportStatus.PENDING.value,
    ReportStatus.VERIFIED.value,
    ReportStatus.RESOLVED.value,
)

# ---------------------------------------------------------------------------
# Score aggregation
# ---------------------------------------------------------------------------

SEVERITY_WEIGHTS = {
    Severity.LOW.value: 1,
    Severity.MEDIUM.value: 2,
    Severity.HIGH.value: 3,
    Severity.CRITICAL.value: 4,
}
DEFAULT_SEVERITY_WEIGHT = 1

SCORE_TYPE_WEIGHTS = {
    ReportType.DELAY.value: {"reliability": 0.4, "punctuality": 0.6},
    ReportType.SAFETY.value: {"safety": 1.0},
    ReportType.CROWDING.value: {"comfort": 0.8, "reliability": 0.2},
    ReportType.BREAKDOWN.value: {"reliability": 0.6, "safety": 0.4},
    ReportType.OTHER.value: {"reliability": 0.3, "safety": 0.3, "comfort": 0.4},
}
UNKNOWN_TYPE_WEIGHTS = {name: 0.25 for name in SUB_SCORES}

# ---------------------------------------------------------------------------
# Efficiency factors
# ---------------------------------------------------------------------------

EFFICIENCY_FACTOR_REPORT_TYPES = {
    "reliability": (ReportType.DELAY.value, ReportType.BREAKDOWN.value),
    "speed": (ReportType.DELAY.value,),
    "safety": (ReportType.SAFETY.value,),
    "comfort": (ReportType.CROWDING.value,),
}

SPEED_SEVERITY_VALUES = {Severity.LOW.value: 80, Severity.MEDIUM.value: 60}
SPEED_DEFAULT_VALUE = 40

SAFETY_SEVERITY_PENALTIES = {
    Severity.LOW.value: 5,
    Severity.MEDIUM.value: 15,
    Severity.HIGH.value: 30,
    Severity.CRITICAL.value: 40,
}

COMFORT_SEVERITY_VALUES = {Severity.LOW.value: 90, Severity.MEDIUM.value: 70}
COMFORT_DEFAULT_VALUE = 50

# ---------------------------------------------------------------------------
# Travel time history
# ---------------------------------------------------------------------------

TRAVEL_TIME_REPORT_TYPES = (ReportType.DELAY.value, ReportType.BREAKDOWN.value)

TRAVEL_TIME_SEVERITY_VALUES = {Severity.LOW.value: 1.0, Severity.MEDIUM.value: 1.2}
TRAVEL_TIME_DEFAULT_SEVERITY_VALUE = 1.5
