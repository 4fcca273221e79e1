"""COMMS — Metric Record API Routes.

CRUD over the four metric kinds. Writes return the stored row so clients
replace their local copy with it instead of re-fetching.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlmodel import Session

from comms.database import get_session
from comms.core.metric_registry import BusinessUnit, MetricKind, Platform
from comms.models.metric_models import KIND_MODELS
from comms.storage import metrics_store as store
from comms.storage.metrics_store import (
    MetricConflictError,
    MetricNotFoundError,
    MetricStoreError,
)
from comms.core.logging import get_logger

logger = get_logger("api.metrics")

router = APIRouter(prefix="/metrics", tags=["Metrics"])


def resolve_kind(kind: str) -> MetricKind:
    try:
        return MetricKind(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown metric kind: {kind}")


def _store_error(e: Exception) -> HTTPException:
    """Translate a store failure into an HTTP error."""
    if isinstance(e, MetricNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, MetricConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, MetricStoreError):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Metric write failed: {e}")
    return HTTPException(status_code=500, detail=f"Metric write failed: {str(e)}")


# ── Queries ──


@router.get("/{kind}")
async def list_metrics(
    kind: str,
    start_date: Optional[dt.date] = Query(None, description="Inclusive, YYYY-MM-DD"),
    end_date: Optional[dt.date] = Query(None, description="Inclusive, YYYY-MM-DD"),
    business_unit: Optional[BusinessUnit] = None,
    platform: Optional[Platform] = None,
    country: Optional[str] = Query(None, description="GLOBAL or omitted = all"),
    session: Session = Depends(get_session),
):
    """List records of a kind filtered by dimensions and date range."""
    metric_kind = resolve_kind(kind)
    dimensions = {
        name: value
        for name, value in (
            ("business_unit", business_unit),
            ("platform", platform),
            ("country", country),
        )
        if value is not None
    }
    try:
        records = store.find_by_dimensions_and_date_range(
            session, metric_kind, start_date=start_date, end_date=end_date, **dimensions
        )
    except MetricStoreError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"status": "success", "count": len(records), "results": records}


@router.get("/{kind}/{record_id}")
async def get_metric(
    kind: str, record_id: int, session: Session = Depends(get_session)
):
    metric_kind = resolve_kind(kind)
    try:
        return store.get_by_id(session, metric_kind, record_id)
    except MetricStoreError as e:
        raise _store_error(e)


# ── Commands ──


def _register_write_routes(kind: MetricKind) -> None:
    """Typed upsert / update endpoints for one kind."""
    model, create_model, update_model = KIND_MODELS[kind]

    @router.post(
        f"/{kind.value}",
        status_code=201,
        response_model=model,
        name=f"upsert_{kind.value}_metric",
    )
    async def upsert_metric(
        payload: create_model,  # type: ignore[valid-type]
        session: Session = Depends(get_session),
    ):
        """Insert the record, or overwrite the one with the same dimensions and date."""
        try:
            return store.upsert_by_key(session, kind, payload)
        except Exception as e:
            raise _store_error(e)

    @router.put(
        f"/{kind.value}/{{record_id}}",
        response_model=model,
        name=f"update_{kind.value}_metric",
    )
    async def update_metric(
        record_id: int,
        changes: update_model,  # type: ignore[valid-type]
        session: Session = Depends(get_session),
    ):
        """Apply the supplied fields and return the stored record."""
        try:
            return store.update_by_id(session, kind, record_id, changes)
        except Exception as e:
            raise _store_error(e)


for _kind in MetricKind:
    _register_write_routes(_kind)


# Reached only when no typed write route matched, i.e. the kind is unknown
@router.post("/{kind}", include_in_schema=False)
async def upsert_unknown_kind(kind: str):
    resolve_kind(kind)
    raise HTTPException(status_code=405, detail="Method Not Allowed")


@router.put("/{kind}/{record_id}", include_in_schema=False)
async def update_unknown_kind(kind: str, record_id: int):
    resolve_kind(kind)
    raise HTTPException(status_code=405, detail="Method Not Allowed")


@router.delete("/{kind}/{record_id}", status_code=204)
async def delete_metric(
    kind: str, record_id: int, session: Session = Depends(get_session)
):
    metric_kind = resolve_kind(kind)
    try:
        store.delete_by_id(session, metric_kind, record_id)
    except Exception as e:
        raise _store_error(e)
    return Response(status_code=204)
