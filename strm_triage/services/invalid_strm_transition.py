"""Batch status transitions for invalid STRM records.

Statuses move one way: pending -> processing -> confirmed | ignored, or
pending -> confirmed | ignored directly. Records already confirmed or ignored
are never rewritten; they are reported back as skipped.

Each call issues a single UPDATE guarded by the current status, so it applies
to every eligible row or, on store failure, to none. The UPDATE returns the IDs
it actually changed; a row another writer resolved after the classification
read is reported as skipped, not updated.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from strm_triage.models.invalid_strm_file import InvalidStrmFile
from strm_triage.schemas.invalid_strm import (
    BATCH_ACTIONS,
    BatchTransitionResult,
    InvalidStrmStatus,
)
from strm_triage.services.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

# Statuses a terminal action may be applied from
RESOLVABLE_FROM = (InvalidStrmStatus.pending.value, InvalidStrmStatus.processing.value)


def _coerce_action(action: InvalidStrmStatus | str) -> InvalidStrmStatus:
    target = InvalidStrmStatus(action)
    if target not in BATCH_ACTIONS:
        allowed = ", ".join(sorted(a.value for a in BATCH_ACTIONS))
        raise ValidationError(f"action must be one of: {allowed} (got {action!r})")
    return target


def _require_actor(actor: str | None) -> str:
    if actor is None or not actor.strip():
        raise ValidationError("actor is required")
    return actor.strip()


def _apply(
    db: Session,
    ids: list[int],
    *,
    eligible_from: tuple[str, ...],
    values: dict,
) -> BatchTransitionResult:
    """Classify ids, then update every eligible one in a single statement."""
    try:
        current = dict(
            db.query(InvalidStrmFile.id, InvalidStrmFile.status)
            .filter(InvalidStrmFile.id.in_(ids))
            .all()
        )
        eligible = [i for i in ids if current.get(i) in eligible_from]
        changed: set[int] = set()
        if eligible:
            result = db.execute(
                update(InvalidStrmFile)
                .where(
                    InvalidStrmFile.id.in_(eligible),
                    InvalidStrmFile.status.in_(eligible_from),
                )
                .values(**values)
                .returning(InvalidStrmFile.id)
                .execution_options(synchronize_session=False)
            )
            changed = set(result.scalars().all())
            if len(changed) != len(eligible):
                logger.info(
                    "Transition changed %d of %d eligible rows; the rest moved concurrently",
                    len(changed),
                    len(eligible),
                )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Batch transition failed for %d records", len(ids))
        raise StoreError(f"Batch transition failed for {len(ids)} records") from exc

    # Rows loaded earlier in this session must not serve stale lifecycle fields
    db.expire_all()
    return BatchTransitionResult(
        updated=[i for i in ids if i in changed],
        skipped=[i for i in ids if i in current and i not in changed],
        missing=[i for i in ids if i not in current],
    )


def batch_transition(
    db: Session,
    ids: list[int],
    action: InvalidStrmStatus | str,
    actor: str,
    reason: str | None = None,
) -> BatchTransitionResult:
    """Confirm or ignore a set of records.

    action must be confirmed or ignored and actor non-empty, else ValidationError.
    Empty ids is a successful no-op. Unknown IDs land in ``missing``, already
    terminal ones in ``skipped``; the rest get status, processed_at (now),
    processed_by, process_result and updated_at in one UPDATE.
    Raises StoreError (after rollback) if the store fails.
    """
    target = _coerce_action(action)
    processed_by = _require_actor(actor)
    unique_ids = sorted(set(ids))
    if not unique_ids:
        return BatchTransitionResult()

    logger.info(
        "Batch transition of %d invalid STRM records to %s by %s",
        len(unique_ids),
        target.value,
        processed_by,
    )
    now = datetime.now(UTC)
    result = _apply(
        db,
        unique_ids,
        eligible_from=RESOLVABLE_FROM,
        values={
            "status": target.value,
            "processed_at": now,
            "processed_by": processed_by,
            "process_result": reason or "",
            "updated_at": now,
        },
    )
    logger.info(
        "Batch transition to %s done: updated=%d skipped=%d missing=%d",
        target.value,
        len(result.updated),
        len(result.skipped),
        len(result.missing),
    )
    return result


def begin_processing(db: Session, ids: list[int], actor: str) -> BatchTransitionResult:
    """Claim pending records by moving them to processing.

    processed_* stay unset until a terminal action; only pending rows move.
    """
    claimed_by = _require_actor(actor)
    unique_ids = sorted(set(ids))
    if not unique_ids:
        return BatchTransitionResult()

    logger.info("Claiming %d invalid STRM records for %s", len(unique_ids), claimed_by)
    return _apply(
        db,
        unique_ids,
        eligible_from=(InvalidStrmStatus.pending.value,),
        values={
            "status": InvalidStrmStatus.processing.value,
            "updated_at": datetime.now(UTC),
        },
    )
