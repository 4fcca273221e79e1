"""COMMS — Metrics Store.

Read and write access to the four metric tables. Writes keyed by the
logical dimensions go through a single INSERT ... ON CONFLICT DO UPDATE
statement, so concurrent writers targeting the same key cannot lose an
update between a lookup and the write.
"""

import datetime as dt
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from comms.core.metric_registry import (
    GLOBAL_COUNTRY,
    KIND_KEYS,
    MetricKind,
    dimension_names,
    measure_names,
)
from comms.models.metric_models import KIND_MODELS
from comms.core.logging import get_logger

logger = get_logger("storage.metrics")

Payload = Union[SQLModel, Dict[str, Any]]


class MetricStoreError(Exception):
    """Base class for store failures."""


class MetricNotFoundError(MetricStoreError):
    """Raised when no record has the requested id."""

    def __init__(self, kind: MetricKind, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.value} metric {record_id} not found")


class MetricConflictError(MetricStoreError):
    """Raised when an update would collide with another record's key."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _table(kind: MetricKind):
    return KIND_MODELS[kind][0]


def _dialect_insert(session: Session):
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise MetricStoreError(f"Atomic upsert is not supported on {name}")


# ─────────────────────────────────────────────
# QUERIES
# ─────────────────────────────────────────────


def _dimension_filters(kind: MetricKind, dimensions: Dict[str, Any]) -> list:
    model = _table(kind)
    allowed = dimension_names(kind)
    filters = []
    for name, value in dimensions.items():
        if name not in allowed:
            raise MetricStoreError(f"{kind.value} metrics have no dimension '{name}'")
        if value is None:
            continue
        # GLOBAL means "every country", not the GLOBAL-tagged rows only
        if name == "country" and value == GLOBAL_COUNTRY:
            continue
        filters.append(getattr(model, name) == value)
    return filters


def find_by_dimensions_and_date_range(
    session: Session,
    kind: MetricKind,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    **dimensions: Any,
) -> List[Any]:
    """Records matching the dimensions within [start_date, end_date], oldest first."""
    model = _table(kind)
    query = select(model).where(*_dimension_filters(kind, dimensions))
    if start_date is not None:
        query = query.where(model.date >= start_date)
    if end_date is not None:
        query = query.where(model.date <= end_date)
    rows = session.exec(query.order_by(model.date, model.id)).all()
    logger.debug(
        f"Fetched {len(rows)} {kind.value} metrics",
        extra={"kind": kind.value, "record_count": len(rows)},
    )
    return list(rows)


def find_latest_by_dimensions(
    session: Session, kind: MetricKind, **dimensions: Any
) -> Optional[Any]:
    """The most recent record matching the dimensions, or None."""
    model = _table(kind)
    return session.exec(
        select(model)
        .where(*_dimension_filters(kind, dimensions))
        .order_by(model.date.desc(), model.id.desc())  # type: ignore
        .limit(1)
    ).first()


def find_most_recent(
    session: Session, kind: MetricKind, limit: int, **dimensions: Any
) -> List[Any]:
    """Up to `limit` records matching the dimensions, newest first."""
    model = _table(kind)
    return list(
        session.exec(
            select(model)
            .where(*_dimension_filters(kind, dimensions))
            .order_by(model.date.desc(), model.id.desc())  # type: ignore
            .limit(limit)
        ).all()
    )


def find_at_latest_date(session: Session, kind: MetricKind) -> List[Any]:
    """Every record that shares the kind's most recent date."""
    model = _table(kind)
    latest = session.exec(select(func.max(model.date))).one()
    if latest is None:
        return []
    return list(
        session.exec(select(model).where(model.date == latest).order_by(model.id)).all()
    )


def get_by_id(session: Session, kind: MetricKind, record_id: int) -> Any:
    record = session.get(_table(kind), record_id)
    if record is None:
        raise MetricNotFoundError(kind, record_id)
    return record


# ─────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────


def upsert_by_key(session: Session, kind: MetricKind, payload: Payload) -> Any:
    """Insert a record, or overwrite the measures of the one with the same key.

    Every measure column is written (full-row semantics: a missing measure
    becomes null). Returns the stored row.
    """
    model, create_model, _ = KIND_MODELS[kind]
    if not isinstance(payload, create_model):
        payload = create_model.model_validate(
            payload.model_dump() if isinstance(payload, SQLModel) else payload
        )
    data = payload.model_dump()
    key = KIND_KEYS[kind]
    now = _utcnow()

    insert = _dialect_insert(session)
    stmt = insert(model).values(**data, created_at=now, updated_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(key),
        set_={
            **{name: stmt.excluded[name] for name in measure_names(kind)},
            "updated_at": now,
        },
    )
    session.execute(stmt)
    session.commit()

    record = session.exec(
        select(model).where(*(getattr(model, k) == data[k] for k in key))
    ).one()
    logger.info(
        f"Upserted {kind.value} metric",
        extra={"kind": kind.value, "entity_id": record.id},
    )
    return record


def update_by_id(
    session: Session, kind: MetricKind, record_id: int, changes: Payload
) -> Any:
    """Apply the supplied fields to a record and return the stored row."""
    _, _, update_model = KIND_MODELS[kind]
    if not isinstance(changes, update_model):
        changes = update_model.model_validate(
            changes.model_dump(exclude_unset=True)
            if isinstance(changes, SQLModel)
            else changes
        )

    record = get_by_id(session, kind, record_id)
    key = KIND_KEYS[kind]
    for name, value in changes.model_dump(exclude_unset=True).items():
        # Key columns are required; an explicit null leaves them unchanged
        if value is None and name in key:
            continue
        setattr(record, name, value)
    record.updated_at = _utcnow()
    session.add(record)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise MetricConflictError(
            f"another {kind.value} metric already exists for this key"
        ) from e
    session.refresh(record)
    logger.info(
        f"Updated {kind.value} metric",
        extra={"kind": kind.value, "entity_id": record_id},
    )
    return record


def delete_by_id(session: Session, kind: MetricKind, record_id: int) -> None:
    record = get_by_id(session, kind, record_id)
    session.delete(record)
    session.commit()
    logger.info(
        f"Deleted {kind.value} metric",
        extra={"kind": kind.value, "entity_id": record_id},
    )
