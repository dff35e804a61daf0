"""
Route Score Computation Pipeline

Recomputes the composite 0-5 score for every active route (or a single route)
from verified and resolved incident reports. The API process normally does
this hourly through its background scheduler; this script is for one-off
runs, cron jobs, or running the scheduler in the foreground.

Usage:
    python -m pipelines.compute_route_scores [--route ROUTE_ID] [--stats] [--schedule]

Options:
    --route ROUTE_ID Compute for specific route only (default: all active routes)
    --stats          Print scoring statistics and exit
    --schedule       Run the recompute scheduler in the foreground until interrupted
"""

import argparse
import time

from routescore.config import get_settings
from routescore.database import get_session, init_db
from routescore.exceptions import RouteNotFoundError
from routescore.logging_config import setup_logging
from routescore.scheduler import build_score_scheduler
from routescore.scoring import calculate_route_score, get_scoring_stats, recompute_all_scores


def print_stats(db):
    stats = get_scoring_stats(db)

    print("=" * 70)
    print("SCORING STATISTICS")
    print("=" * 70)
    print(f"  Active routes:     {stats['total_routes']}")
    print(f"  Scored routes:     {stats['scored_routes']}")
    print(f"  Qualifying reports: {stats['total_reports']}")
    print(f"  Average score:     {stats['average_score']:.2f}")
    last = stats["last_calculated"]
    print(f"  Last calculated:   {last.isoformat() if last else 'never'}")


def compute_route_scores(route_filter: str = None) -> bool:
    """
    Compute scores for all active routes or a single route

    Args:
        route_filter: Only compute this route (default: all active routes)

    Returns:
        True on success, False if the requested route does not exist
    """
    print("=" * 70)
    print("ROUTE SCORE COMPUTATION")
    print("=" * 70)

    start = time.time()
    db = get_session()
    try:
        if route_filter:
            try:
                score = calculate_route_score(db, route_filter)
            except RouteNotFoundError as e:
                print(f"  ✗ {e}")
                return False
            print(f"  ✓ {score.route_id}: overall={score.overall:.2f} ({score.total_reports} reports)")
        else:
            scores = recompute_all_scores(db)
            for score in sorted(scores, key=lambda s: (-s.overall, s.route_id)):
                print(f"  ✓ {score.route_id}: overall={score.overall:.2f} ({score.total_reports} reports)")
            print(f"\n  ✓ Scores computed for {len(scores)} routes")
    finally:
        db.close()

    print(f"\nCompleted in {time.time() - start:.1f}s")
    return True


def run_scheduler(interval_seconds: int):
    print("=" * 70)
    print(f"SCORE SCHEDULER (every {interval_seconds}s, Ctrl+C to stop)")
    print("=" * 70)

    scheduler = build_score_scheduler(get_session, interval_seconds=interval_seconds)
    scheduler.start()
    try:
        scheduler.join()
    except KeyboardInterrupt:
        print("\nStopping scheduler...")
    finally:
        scheduler.stop(timeout=30)

    print(f"✓ {scheduler.passes_completed} passes completed, {scheduler.passes_failed} failed")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Compute composite route scores",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recompute all active routes once
  python -m pipelines.compute_route_scores

  # Recompute a single route
  python -m pipelines.compute_route_scores --route R1

  # Show scoring statistics
  python -m pipelines.compute_route_scores --stats

  # Run the hourly scheduler in the foreground
  python -m pipelines.compute_route_scores --schedule
        """,
    )
    parser.add_argument("--route", type=str, help="Specific route to compute (default: all)")
    parser.add_argument("--stats", action="store_true", help="Print scoring statistics and exit")
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Run the recompute scheduler in the foreground until interrupted",
    )

    args = parser.parse_args(argv)

    if args.schedule and (args.route or args.stats):
        parser.error("--schedule cannot be combined with --route or --stats")

    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    init_db()

    if args.stats:
        db = get_session()
        try:
            print_stats(db)
        finally:
            db.close()
        return 0

    if args.schedule:
        run_scheduler(settings.score_recompute_interval_seconds)
        return 0

    return 0 if compute_route_scores(route_filter=args.route) else 1


if __name__ == "__main__":
    raise SystemExit(main())
