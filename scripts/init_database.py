"""
One-time database initialization script
Run this once to create the tables, optionally loading a few sample routes

Usage:
  python -m scripts.init_database          # Create tables only
  python -m scripts.init_database --seed   # Create tables and load sample routes
"""

import argparse

from sqlalchemy.orm import Session

from routescore.database import get_session, init_db
from routescore.logging_config import setup_logging
from routescore.models import Route, RouteStop

# (route_id, name, operator, fare, operating_start, operating_end, [(stop_name, lat, lon), ...])
SAMPLE_ROUTES = [
    (
        "R11",
        "CBD - Westlands",
        "City Shuttle",
        40.0,
        "05:30",
        "23:00",
        [
            ("Kencom", -1.2850, 36.8250),
            ("Kenyatta Avenue", -1.2836, 36.8172),
            ("Museum Hill", -1.2740, 36.8120),
            ("Westlands Roundabout", -1.2660, 36.8050),
            ("Sarit Centre", -1.2610, 36.8020),
        ],
    ),
    (
        "R23",
        "CBD - Rongai",
        "Metro Trans",
        80.0,
        "05:00",
        "22:00",
        [
            ("Railways", -1.2900, 36.8270),
            ("Nyayo Stadium", -1.3040, 36.8250),
            ("Langata Road", -1.3300, 36.8000),
            ("Bomas", -1.3450, 36.7700),
            ("Galleria", -1.3500, 36.7600),
            ("Kiserian Junction", -1.3900, 36.7450),
            ("Rongai", -1.3960, 36.7440),
        ],
    ),
    (
        "R46",
        "CBD - Kawangware",
        "Citi Hoppa",
        50.0,
        "06:00",
        "21:00",
        [
            ("Kencom", -1.2850, 36.8250),
            ("Kenyatta Avenue", -1.2836, 36.8172),
            ("Yaya Centre", -1.2930, 36.7870),
            ("Adams Arcade", -1.3010, 36.7780),
            ("Kawangware", -1.2860, 36.7510),
        ],
    ),
    (
        "R58",
        "CBD - Buruburu",
        "Double M",
        30.0,
        "22:00",
        "06:00",
        [
            ("Ambassadeur", -1.2840, 36.8260),
            ("Jogoo Road", -1.2920, 36.8450),
            ("Buruburu", -1.2870, 36.8770),
        ],
    ),
]


def seed_sample_routes(db: Session) -> int:
    """
    Insert the sample routes that are not in the database yet

    Returns:
        Number of routes inserted
    """
    existing = {route_id for (route_id,) in db.query(Route.route_id).all()}

    inserted = 0
    for route_id, name, operator, fare, start, end, stops in SAMPLE_ROUTES:
        if route_id in existing:
            continue

        route = Route(
            route_id=route_id,
            name=name,
            operator=operator,
            fare=fare,
            operating_start=start,
            operating_end=end,
            is_active=True,
        )
        route.stops = [
            RouteStop(stop_sequence=i, stop_name=stop_name, stop_lat=lat, stop_lon=lon)
            for i, (stop_name, lat, lon) in enumerate(stops, start=1)
        ]
        db.add(route)
        inserted += 1

    db.commit()
    return inserted


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create route score database tables")
    parser.add_argument("--seed", action="store_true", help="Load sample routes after creating tables")
    args = parser.parse_args(argv)

    setup_logging()

    print("=" * 70)
    print("Route Score - Database Initialization")
    print("=" * 70)

    print("\n[1/2] Creating database tables...")
    init_db()
    print("✓ Database tables created")

    if args.seed:
        print("\n[2/2] Loading sample routes...")
        db = get_session()
        try:
            inserted = seed_sample_routes(db)
        finally:
            db.close()
        print(f"✓ {inserted} sample routes loaded")
    else:
        print("\n[2/2] Skipping sample routes (use --seed to load them)")

    print("\n" + "=" * 70)
    print("✓ Database initialization complete!")
    print("=" * 70)
    print("\nYou can now run:")
    print("  - python -m pipelines.compute_route_scores (compute scores)")
    print("  - uvicorn api.main:app (serve the API)")


if __name__ == "__main__":
    main()
