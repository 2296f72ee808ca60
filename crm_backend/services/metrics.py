from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from crm_backend.clock import now as clock_now
from crm_backend.db import read_snapshot
from crm_backend.models import Contact, Deal, PipelineStage, StageKind, User
from crm_backend.services.periods import Window, month_window, span_window, year_window
from crm_backend.services.view_models import money

logger = logging.getLogger("crm_backend.services.metrics")

Number = Union[int, float, Decimal]

SALES_PERIODS = ("monthly", "quarterly", "yearly")

STAGE_CHART_COLORS = (
    "hsl(var(--primary))",
    "hsl(var(--primary)/0.8)",
    "hsl(var(--primary)/0.6)",
    "hsl(var(--primary)/0.4)",
    "hsl(var(--primary)/0.2)",
)

SOURCE_CHART_COLORS = (
    "hsl(var(--primary))",
    "hsl(var(--secondary))",
    "hsl(var(--accent))",
    "hsl(var(--destructive))",
    "hsl(var(--success))",
)

TOP_PERFORMER_CUTOFFS = {
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "yearly": relativedelta(years=1),
}
TOP_PERFORMERS_LIMIT = 5


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def percent_change(curr: Number, prev: Number) -> float:
    """
    Month-over-month change in percent, one decimal.

    A zero previous value always yields 0, whatever the current value is.
    """
    if prev == 0:
        return 0.0
    return round((float(curr) - float(prev)) / float(prev) * 100, 1)


def conversion_rate(won: int, lost: int) -> float:
    closed = won + lost
    if closed == 0:
        return 0.0
    return round(won / closed * 100, 1)


@dataclass(frozen=True)
class StageKinds:
    """Stage ids grouped by kind, resolved once per aggregate call."""

    open_ids: List[int]
    won_ids: List[int]
    lost_ids: List[int]


def resolve_stage_kinds(session: Session) -> StageKinds:
    rows = session.query(PipelineStage.id, PipelineStage.kind).all()
    grouped: Dict[str, List[int]] = {kind.value: [] for kind in StageKind}
    for stage_id, kind in rows:
        grouped.setdefault(kind, []).append(stage_id)
    return StageKinds(
        open_ids=grouped[StageKind.OPEN.value],
        won_ids=grouped[StageKind.WON.value],
        lost_ids=grouped[StageKind.LOST.value],
    )


def _in_window(column, window: Window):
    return [column >= window.start, column <= window.end]


def _deal_value_sum(session: Session, stage_ids: Sequence[int], window: Window) -> Decimal:
    if not stage_ids:
        return Decimal("0")
    total = (
        session.query(func.coalesce(func.sum(Deal.value), 0))
        .filter(Deal.stage_id.in_(stage_ids), *_in_window(Deal.updated_at, window))
        .scalar()
    )
    return Decimal(total or 0)


def _deal_count(
    session: Session,
    stage_ids: Sequence[int],
    window: Optional[Window] = None,
) -> int:
    if not stage_ids:
        return 0
    query = session.query(func.count(Deal.id)).filter(Deal.stage_id.in_(stage_ids))
    if window is not None:
        query = query.filter(*_in_window(Deal.updated_at, window))
    return int(query.scalar() or 0)


def _new_contact_count(session: Session, window: Window) -> int:
    return int(
        session.query(func.count(Contact.id))
        .filter(*_in_window(Contact.created_at, window))
        .scalar()
        or 0
    )


# ---------------------------------------------------------------------------
# Dashboard KPI cards
# ---------------------------------------------------------------------------

def _compute_dashboard_metrics(session: Session, moment: datetime) -> Dict[str, Any]:
    current = month_window(moment)
    previous = month_window(moment, months_back=1)
    kinds = resolve_stage_kinds(session)

    # 1. Revenue from won deals
    revenue = _deal_value_sum(session, kinds.won_ids, current)
    prev_revenue = _deal_value_sum(session, kinds.won_ids, previous)

    # 2. Active (open) deals: all of them now vs. those touched last month
    active = _deal_count(session, kinds.open_ids)
    prev_active = _deal_count(session, kinds.open_ids, previous)

    # 3. Conversion rate over deals closed within each month
    rate = conversion_rate(
        _deal_count(session, kinds.won_ids, current),
        _deal_count(session, kinds.lost_ids, current),
    )
    prev_rate = conversion_rate(
        _deal_count(session, kinds.won_ids, previous),
        _deal_count(session, kinds.lost_ids, previous),
    )

    # 4. New contacts
    new_contacts = _new_contact_count(session, current)
    prev_new_contacts = _new_contact_count(session, previous)

    return {
        "totalRevenue": money(revenue),
        "totalRevenueChange": percent_change(revenue, prev_revenue),
        "activeDeals": active,
        "activeDealsChange": percent_change(active, prev_active),
        "conversionRate": rate,
        "conversionRateChange": percent_change(rate, prev_rate),
        "newContacts": new_contacts,
        "newContactsChange": percent_change(new_contacts, prev_new_contacts),
    }


def get_dashboard_metrics(
    session: Session,
    now: Optional[datetime] = None,
    *,
    snapshot: bool = False,
) -> Dict[str, Any]:
    """
    KPI card values for the dashboard.

    The queries run one after another with no shared transaction, so a write
    landing mid-way can produce numbers that never coexisted. Pass
    `snapshot=True` to run them inside a single read transaction instead.
    """
    moment = now or clock_now()

    if snapshot:
        with read_snapshot(session):
            metrics = _compute_dashboard_metrics(session, moment)
    else:
        metrics = _compute_dashboard_metrics(session, moment)

    logger.debug("Dashboard metrics for %s: %s", moment.date(), metrics)
    return metrics


# ---------------------------------------------------------------------------
# Sales performance chart
# ---------------------------------------------------------------------------

def _sales_buckets(period: str, moment: datetime) -> List[tuple[str, Window]]:
    if period == "monthly":
        buckets = []
        for months_back in range(7, -1, -1):
            label = (moment - relativedelta(months=months_back)).strftime("%b")
            buckets.append((label, month_window(moment, months_back)))
        return buckets

    if period == "quarterly":
        # Labels are positional (oldest is Q1), not calendar quarters.
        return [
            (f"Q{4 - i}", span_window(moment, 3 * i + 2, 3 * i))
            for i in range(3, -1, -1)
        ]

    if period == "yearly":
        return [
            (str(moment.year - years_back), year_window(moment.year - years_back))
            for years_back in range(4, -1, -1)
        ]

    raise ValueError(
        f"Invalid period {period!r}. Must be one of: {', '.join(SALES_PERIODS)}"
    )


def get_sales_performance_data(
    session: Session,
    period: str = "monthly",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Won revenue per time bucket, oldest bucket first.

    Each bucket is its own query against the deals table.
    """
    moment = now or clock_now()
    buckets = _sales_buckets(period, moment)
    won_ids = resolve_stage_kinds(session).won_ids

    sales_data = [
        {"name": label, "value": money(_deal_value_sum(session, won_ids, window))}
        for label, window in buckets
    ]
    logger.debug("Sales performance (%s): %d buckets", period, len(sales_data))
    return sales_data


# ---------------------------------------------------------------------------
# Secondary dashboard charts
# ---------------------------------------------------------------------------

def get_deals_by_stage(session: Session) -> List[Dict[str, Any]]:
    """Deal count per stage, in stage order."""
    counts = dict(
        session.query(Deal.stage_id, func.count(Deal.id))
        .group_by(Deal.stage_id)
        .all()
    )
    stages = session.query(PipelineStage).order_by(PipelineStage.order.asc()).all()
    return [
        {
            "name": stage.name,
            "value": int(counts.get(stage.id, 0)),
            "color": STAGE_CHART_COLORS[index % len(STAGE_CHART_COLORS)],
        }
        for index, stage in enumerate(stages)
    ]


def get_lead_sources(session: Session) -> List[Dict[str, Any]]:
    """Contacts counted per lead source, most common first."""
    sources = Counter(
        source or "Unknown" for (source,) in session.query(Contact.source).all()
    )
    entries = [
        {
            "name": name,
            "value": count,
            "color": SOURCE_CHART_COLORS[index % len(SOURCE_CHART_COLORS)],
        }
        for index, (name, count) in enumerate(sources.items())
    ]
    # sorted() is stable, so equal counts keep first-seen order
    return sorted(entries, key=lambda entry: entry["value"], reverse=True)


def get_top_performers(
    session: Session,
    period: str = "monthly",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Users ranked by the value of deals they created within the period.
    Unknown periods fall back to monthly.
    """
    moment = now or clock_now()
    cutoff = moment - TOP_PERFORMER_CUTOFFS.get(period, TOP_PERFORMER_CUTOFFS["monthly"])

    totals = {
        owner_id: (Decimal(total or 0), int(count))
        for owner_id, total, count in (
            session.query(Deal.owner_id, func.sum(Deal.value), func.count(Deal.id))
            .filter(Deal.created_at >= cutoff)
            .group_by(Deal.owner_id)
            .all()
        )
    }

    performers = []
    for user in session.query(User).order_by(User.id.asc()).all():
        total, count = totals.get(user.id, (Decimal("0"), 0))
        performers.append(
            {
                "id": user.id,
                "name": user.name,
                "totalValue": money(total),
                "dealCount": count,
            }
        )

    performers.sort(key=lambda p: p["totalValue"], reverse=True)
    return performers[:TOP_PERFORMERS_LIMIT]
