from __future__ import annotations
"""Aggregations behind the reports and dashboard endpoints.

All functions take the session explicitly so the rollup script can run
outside a request. Timestamps read back from SQLite are naive and are
treated as UTC.
"""
import math
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from app.constants.service import (
    STATUS_DISPLAY, TIME_RANGE_DAYS, DEFAULT_TIME_RANGE, service_type_to_display, status_display_name,
)
from app.models.base import utcnow
from app.models.customer import Customer
from app.models.daily_metric import DailyMetric
from app.models.service_task import ServiceTask
from app.utils.listing import iso
from app.utils.validation import format_cents

DAILY_VOLUME_DAYS = 30
RECENT_ACTIVITY = 10
SECONDS_PER_DAY = 86400


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _round_half_up(value: float, places: int = 0) -> float:
    q = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def percentage(count: int, total: int) -> int:
    return int(_round_half_up(count / total * 100)) if total else 0


def time_range_cutoff(token: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Unknown or missing tokens fall back to the 30 day window."""
    days = TIME_RANGE_DAYS.get(token or DEFAULT_TIME_RANGE, TIME_RANGE_DAYS[DEFAULT_TIME_RANGE])
    return (now or utcnow()) - timedelta(days=days)


def _turnaround_days(task: ServiceTask) -> float:
    delta = _as_utc(task.actual_completion) - _as_utc(task.created_at)
    return delta.total_seconds() / SECONDS_PER_DAY


def _completed_with_times(session: Session, start: datetime, end: Optional[datetime] = None) -> List[ServiceTask]:
    stmt = select(ServiceTask).where(
        ServiceTask.created_at >= start,
        ServiceTask.status.in_(ServiceTask.FINISHED_STATUSES),
        ServiceTask.actual_completion.is_not(None),
    )
    if end is not None:
        stmt = stmt.where(ServiceTask.created_at < end)
    return list(session.execute(stmt).scalars())


def _count_tasks(session: Session, start: datetime, end: Optional[datetime] = None, statuses=None) -> int:
    stmt = select(func.count(ServiceTask.id)).where(ServiceTask.created_at >= start)
    if end is not None:
        stmt = stmt.where(ServiceTask.created_at < end)
    if statuses:
        stmt = stmt.where(ServiceTask.status.in_(statuses))
    return int(session.execute(stmt).scalar_one())


def task_metrics(session: Session, time_range: Optional[str]) -> dict:
    """Totals for the window, preferring pre-aggregated DailyMetric rows when any exist."""
    cutoff = time_range_cutoff(time_range)
    daily = session.execute(
        select(DailyMetric).where(DailyMetric.day >= cutoff.date()).order_by(DailyMetric.day)
    ).scalars().all()
    if daily:
        total = sum(m.total_tasks for m in daily)
        completed = sum(m.completed_tasks for m in daily)
        weighted = [(m.avg_turnaround_days, m.completed_tasks) for m in daily
                    if m.avg_turnaround_days is not None and m.completed_tasks]
        weight = sum(n for _, n in weighted)
        avg = _round_half_up(sum(d * n for d, n in weighted) / weight, 1) if weight else 0
        source = 'daily_metrics'
    else:
        total = _count_tasks(session, cutoff)
        completed = _count_tasks(session, cutoff, statuses=ServiceTask.FINISHED_STATUSES)
        timed = _completed_with_times(session, cutoff)
        avg = _round_half_up(sum(_turnaround_days(t) for t in timed) / len(timed), 1) if timed else 0
        source = 'real_time'
    return {
        'totalTasks': total,
        'completedTasks': completed,
        'avgTurnaroundTime': avg,
        'completionRate': percentage(completed, total),
        'dataSource': source,
    }


def _grouped(session: Session, column, cutoff: datetime):
    rows = session.execute(
        select(column, func.count(ServiceTask.id)).where(ServiceTask.created_at >= cutoff).group_by(column)
    ).all()
    return sorted(((key, int(n)) for key, n in rows), key=lambda r: (-r[1], r[0]))


def service_type_breakdown(session: Session, time_range: Optional[str]) -> dict:
    rows = _grouped(session, ServiceTask.service_type, time_range_cutoff(time_range))
    total = sum(n for _, n in rows)
    return {
        'serviceTypes': [{
            'type': service_type_to_display(key),
            'count': n,
            'percentage': percentage(n, total),
        } for key, n in rows],
        'totalTasks': total,
    }


def status_breakdown(session: Session, time_range: Optional[str]) -> dict:
    rows = _grouped(session, ServiceTask.status, time_range_cutoff(time_range))
    total = sum(n for _, n in rows)
    return {
        'statusDistribution': [{
            'status': status_display_name(key),
            'statusKey': key,
            'count': n,
            'color': STATUS_DISPLAY.get(key, {}).get('color', 'bg-gray-500'),
            'percentage': percentage(n, total),
        } for key, n in rows],
        'totalTasks': total,
    }


def dashboard_stats(session: Session, days: int, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    cutoff = now - timedelta(days=days)
    total = _count_tasks(session, cutoff)
    by_status = _grouped(session, ServiceTask.status, cutoff)
    by_type = _grouped(session, ServiceTask.service_type, cutoff)[:10]
    completed = sum(n for key, n in by_status if key in ServiceTask.FINISHED_STATUSES)

    timed = _completed_with_times(session, cutoff)
    # whole days per task, partial days round up
    avg_days = sum(math.ceil(_turnaround_days(t)) for t in timed) / len(timed) if timed else 0
    revenue = session.execute(
        select(func.coalesce(func.sum(ServiceTask.actual_cost_cents), 0)).where(
            ServiceTask.created_at >= cutoff, ServiceTask.status.in_(ServiceTask.FINISHED_STATUSES))
    ).scalar_one()
    customers = session.execute(select(func.count(Customer.id))).scalar_one()

    recent = session.execute(
        select(ServiceTask).where(ServiceTask.created_at >= cutoff)
        .order_by(ServiceTask.updated_at.desc(), ServiceTask.id).limit(RECENT_ACTIVITY)
    ).scalars().all()

    return {
        'summary': {
            'totalTasks': total,
            'completedTasks': completed,
            'avgTurnaroundDays': _round_half_up(avg_days, 1),
            'totalCustomers': int(customers),
            'totalRevenue': format_cents(int(revenue)),
            'completionRate': percentage(completed, total),
        },
        'statusDistribution': [{
            'status': status_display_name(key),
            'statusKey': key,
            'count': n,
            'percentage': percentage(n, total),
        } for key, n in by_status],
        'serviceTypeDistribution': [{
            'serviceType': service_type_to_display(key),
            'serviceTypeKey': key,
            'count': n,
            'percentage': percentage(n, total),
        } for key, n in by_type],
        'recentActivity': [{
            'id': t.id,
            'customerName': t.customer_name,
            'serviceType': service_type_to_display(t.service_type),
            'status': status_display_name(t.status),
            'itemModel': t.item_model or '',
            'updatedAt': iso(t.updated_at),
            'createdAt': iso(t.created_at),
            'assignedTo': t.assigned_to.name if t.assigned_to else 'Unassigned',
        } for t in recent],
        'dailyVolume': daily_volume(session, now),
        'timeRange': days,
    }


def daily_volume(session: Session, now: datetime, days: int = DAILY_VOLUME_DAYS) -> List[dict]:
    """Tasks created per UTC day, oldest first, including empty days."""
    today = _as_utc(now).date()
    first = today - timedelta(days=days - 1)
    start = datetime.combine(first, time.min, tzinfo=timezone.utc)
    created = session.execute(select(ServiceTask.created_at).where(ServiceTask.created_at >= start)).scalars()
    counts = {}
    for ts in created:
        d = _as_utc(ts).date()
        counts[d] = counts.get(d, 0) + 1
    return [{'date': (first + timedelta(days=i)).isoformat(), 'count': counts.get(first + timedelta(days=i), 0)}
            for i in range(days)]


def rollup_daily_metrics(session: Session, day: date) -> DailyMetric:
    """Recompute the DailyMetric row for tasks created on ``day`` (UTC).

    Safe to re-run; the existing row for the day is overwritten. The caller commits.
    """
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    timed = _completed_with_times(session, start, end)
    metric = session.execute(select(DailyMetric).where(DailyMetric.day == day)).scalar_one_or_none()
    if metric is None:
        metric = DailyMetric(day=day)
        session.add(metric)
    metric.total_tasks = _count_tasks(session, start, end)
    metric.completed_tasks = _count_tasks(session, start, end, statuses=ServiceTask.FINISHED_STATUSES)
    metric.avg_turnaround_days = (
        _round_half_up(sum(_turnaround_days(t) for t in timed) / len(timed), 2) if timed else None
    )
    return metric
