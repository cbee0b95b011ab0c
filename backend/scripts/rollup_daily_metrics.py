#!/usr/bin/env python
"""Populate the daily_metrics table from service tasks.

Usage:
    python backend/scripts/rollup_daily_metrics.py                 # yesterday (UTC)
    python backend/scripts/rollup_daily_metrics.py --day 2026-10-01
    python backend/scripts/rollup_daily_metrics.py --days 30       # the last 30 days, ending yesterday
    python backend/scripts/rollup_daily_metrics.py --dry-run
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from datetime import date, timedelta

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from app import create_app, get_db  # type: ignore
from app.models.base import utcnow
from app.services.reporting import rollup_daily_metrics


def parse_args():
    p = argparse.ArgumentParser(
        description="Roll service tasks up into daily_metrics rows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  yesterday: rollup_daily_metrics.py\n  backfill: rollup_daily_metrics.py --days 90\n"""),
    )
    p.add_argument('--day', type=date.fromisoformat, help='Single UTC day (YYYY-MM-DD)')
    p.add_argument('--days', type=int, default=1, help='Number of days ending yesterday (ignored with --day)')
    p.add_argument('--dry-run', action='store_true', help='Rollback after computing (no commit)')
    return p.parse_args()


def target_days(args):
    if args.day:
        return [args.day]
    yesterday = utcnow().date() - timedelta(days=1)
    return [yesterday - timedelta(days=i) for i in range(max(args.days, 1) - 1, -1, -1)]


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        for day in target_days(args):
            m = rollup_daily_metrics(session, day)
            print(f"{day.isoformat()}: total={m.total_tasks} completed={m.completed_tasks} avg_turnaround={m.avg_turnaround_days}")
        if args.dry_run:
            session.rollback()
            print("[DRY-RUN] rolled back")
        else:
            session.commit()
            print("[DONE] daily metrics written")


if __name__ == '__main__':
    main()
