from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.exceptions import BulkValidationError, TransientStorageError
from app.models.schedule import Schedule, ScheduleStatus
from app.services.audit import log_activity
from app.services.batch_conflicts import detect_internal_schedule_conflicts
from app.services.schedule_locking import (
    acquire_booking_locks,
    run_in_transaction,
    schedule_fields,
    unlocked_reads,
)
from app.services.schedule_validation import validate_schedule

logger = logging.getLogger(__name__)


class BulkState(str, Enum):
    validating = "validating"
    rejected = "rejected"
    committing = "committing"
    committed = "committed"
    commit_failed = "commit_failed"
    aborted = "aborted"


_TRANSITIONS: dict[BulkState, set[BulkState]] = {
    BulkState.validating: {BulkState.rejected, BulkState.committing, BulkState.aborted},
    BulkState.committing: {BulkState.committed, BulkState.commit_failed, BulkState.rejected},
    BulkState.rejected: set(),
    BulkState.committed: set(),
    BulkState.commit_failed: set(),
    BulkState.aborted: set(),
}


class _ItemErrors:
    """Per-index error list, merged across validation phases."""

    def __init__(self, payloads: Sequence[dict]) -> None:
        self._payloads = payloads
        self._by_index: dict[int, dict] = {}

    def add(self, index: int, messages: Sequence[str]) -> None:
        if not messages:
            return
        entry = self._by_index.setdefault(
            index, {"line": index + 1, "schedule": self._payloads[index], "errors": []}
        )
        entry["errors"].extend(messages)

    def __bool__(self) -> bool:
        return bool(self._by_index)

    def as_list(self) -> list[dict]:
        return [self._by_index[index] for index in sorted(self._by_index)]


class BulkScheduleService:
    """All-or-nothing creation of many schedules.

    Phase one validates each item against the database, phase two looks for
    collisions between the items themselves. Any error rejects the whole
    request before anything is written. A clean batch is inserted in one
    transaction that first takes the booking locks for every item and
    re-validates under them, so a single booking committed in the meantime
    cannot slip through.
    """

    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.state = BulkState.validating

    def _transition(self, new_state: BulkState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid bulk state transition {self.state.value} -> {new_state.value}")
        logger.debug("Bulk schedule request %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    def _reject(self, errors: _ItemErrors) -> BulkValidationError:
        self._transition(BulkState.rejected)
        item_errors = errors.as_list()
        logger.info("Bulk schedule request rejected: %s item(s) failed validation", len(item_errors))
        return BulkValidationError(item_errors)

    def create_many(self, items: Sequence, *, actor_id: str | None) -> list[str]:
        payloads = [item.model_dump(mode="json") if hasattr(item, "model_dump") else dict(item) for item in items]
        fields = [schedule_fields(payload) for payload in payloads]
        errors = _ItemErrors(payloads)

        valid: list[dict] = []
        try:
            with unlocked_reads(self.db, operation="bulk_validate_schedules"):
                for index, item in enumerate(fields):
                    validation = validate_schedule(self.db, item)
                    if validation.is_valid:
                        valid.append({**item, "index": index})
                    else:
                        errors.add(index, validation.errors)
        except Exception:
            self._transition(BulkState.aborted)
            raise

        for conflict in detect_internal_schedule_conflicts(valid):
            errors.add(conflict.a_index, [conflict.message_for(conflict.a_index)])
            errors.add(conflict.b_index, [conflict.message_for(conflict.b_index)])

        # Release the read transaction; the write transaction starts fresh.
        self.db.rollback()
        if errors:
            raise self._reject(errors)

        self._transition(BulkState.committing)

        def work() -> list[str]:
            acquire_booking_locks(self.db, fields)
            locked_errors = _ItemErrors(payloads)
            for index, item in enumerate(fields):
                locked_errors.add(index, validate_schedule(self.db, item).errors)
            if locked_errors:
                raise self._reject(locked_errors)

            schedules = [Schedule(**item, status=ScheduleStatus.confirmed, created_by=actor_id) for item in fields]
            self.db.add_all(schedules)
            self.db.flush()
            ids = [schedule.id for schedule in schedules]
            log_activity(
                self.db,
                actor_id=actor_id,
                action="schedule.bulk_create",
                details={"count": len(ids), "ids": ids},
            )
            return ids

        try:
            ids = run_in_transaction(self.db, self.settings, work, operation="bulk_create_schedules")
        except BulkValidationError:
            raise
        except TransientStorageError:
            self._transition(BulkState.commit_failed)
            logger.warning("Bulk schedule insert gave up on transient storage errors; nothing was written")
            raise
        except Exception:
            self._transition(BulkState.commit_failed)
            logger.exception("Bulk schedule insert failed; nothing was written")
            raise

        self._transition(BulkState.committed)
        logger.info("Bulk schedules created: %s schedules by user %s", len(ids), actor_id)
        return ids
