from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from routescore.clock import utcnow

Base = declarative_base()


class Route(Base):
    """Transit route (read-only to the scoring core)"""

    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String)
    operator = Column(String)
    fare = Column(Float)

    # Operating hours in HH:MM format
    operating_start = Column(String)
    operating_end = Column(String)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    stops = relationship(
        "RouteStop",
        back_populates="route",
        order_by="RouteStop.stop_sequence",
        cascade="all, delete-orphan",
    )
    reports = relationship("Report", back_populates="route")

    @property
    def stop_names(self) -> list[str]:
        return [stop.stop_name for stop in self.stops]


class RouteStop(Base):
    """Ordered stop along a route"""

    __tablename__ = "route_stops"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(String, ForeignKey("routes.route_id"), nullable=False, index=True)
    stop_sequence = Column(Integer, nullable=False)
    stop_name = Column(String, nullable=False)
    stop_lat = Column(Float)
    stop_lon = Column(Float)

    route = relationship("Route", back_populates="stops")

    __table_args__ = (Index("idx_route_stop_sequence", "route_id", "stop_sequence", unique=True),)


class Report(Base):
    """
    Crowd-sourced incident report about a route.

    report_type, severity and status hold the string values of the enums in
    routescore.taxonomy.
    """

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(String, ForeignKey("routes.route_id"), nullable=False, index=True)
    user_id = Column(String, index=True)  # None for anonymous submissions
    report_type = Column(String, nullable=False)
    severity = Column(String, nullable=False, default="medium")
    status = Column(String, nullable=False, default="pending")
    description = Column(Text)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    route = relationship("Route", back_populates="reports")

    __table_args__ = (
        Index("idx_report_route_status", "route_id", "status"),
        Index("idx_report_route_created", "route_id", "created_at"),
    )


class Score(Base):
    """
    Composite 0-5 quality score for a route.

    One row per route, written only by routescore.scoring via upsert.
    overall is always the mean of the four sub-scores.
    """

    __tablename__ = "scores"

    route_id = Column(String, primary_key=True)

    reliability = Column(Float, nullable=False, default=0.0)
    safety = Column(Float, nullable=False, default=0.0)
    punctuality = Column(Float, nullable=False, default=0.0)
    comfort = Column(Float, nullable=False, default=0.0)
    overall = Column(Float, nullable=False, default=0.0, index=True)

    total_reports = Column(Integer, nullable=False, default=0)
    last_calculated = Column(DateTime, nullable=False, default=utcnow, index=True)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
