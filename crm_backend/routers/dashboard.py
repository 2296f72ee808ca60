from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crm_backend.db import get_db
from crm_backend.services.metrics import (
    get_dashboard_metrics,
    get_deals_by_stage,
    get_lead_sources,
    get_sales_performance_data,
    get_top_performers,
)

logger = logging.getLogger("crm_backend.routers.dashboard")

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def _server_error(what: str, exc: Exception) -> HTTPException:
    logger.exception("Error fetching %s", what)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to fetch {what}",
    )


@router.get("/metrics", summary="KPI cards with month-over-month change.")
def dashboard_metrics(db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        return get_dashboard_metrics(db)
    except Exception as exc:
        raise _server_error("dashboard metrics", exc) from exc


@router.get("/sales-performance", summary="Won revenue per month, quarter or year.")
def sales_performance(
    period: str = Query(default="monthly"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        sales_data = get_sales_performance_data(db, period)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("sales performance data", exc) from exc
    return {"salesData": sales_data}


@router.get("/deals-by-stage")
def deals_by_stage(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    try:
        return get_deals_by_stage(db)
    except Exception as exc:
        raise _server_error("deals by stage", exc) from exc


@router.get("/lead-sources")
def lead_sources(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    try:
        return get_lead_sources(db)
    except Exception as exc:
        raise _server_error("lead sources", exc) from exc


@router.get("/top-sales")
def top_sales(
    period: str = Query(default="monthly"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        performers = get_top_performers(db, period)
    except Exception as exc:
        raise _server_error("top sales", exc) from exc
    return {"performers": performers}
