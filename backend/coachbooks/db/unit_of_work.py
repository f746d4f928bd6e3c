from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coachbooks.core.config import settings
from coachbooks.core.errors import ReferenceNumberConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REFERENCE_COLUMNS = ("transaction_number", "quote_number", "reference_counters")


def _is_reference_collision(e: IntegrityError) -> bool:
    text = str(e.orig) if e.orig is not None else str(e)
    return any(col in text for col in _REFERENCE_COLUMNS)


def run_atomic(s: Session, work: Callable[[], T], retries: int | None = None) -> T:
    """Run ``work`` as one unit of work and commit it.

    Anything raised rolls the whole unit back, so multi-row writes (FX legs,
    mission settlement) are committed together or not at all. A uniqueness
    collision on a reference number is retried with a fresh number; when the
    retries run out it surfaces as ``ReferenceNumberConflict``.
    """
    attempts = retries if retries is not None else settings.reference_number_max_retries
    last: IntegrityError | None = None
    for attempt in range(max(1, attempts)):
        try:
            result = work()
            s.commit()
            return result
        except IntegrityError as e:
            s.rollback()
            if not _is_reference_collision(e):
                raise
            last = e
            logger.warning("reference number collision, retry %d/%d: %s", attempt + 1, attempts, e.orig)
        except Exception:
            s.rollback()
            raise

    raise ReferenceNumberConflict(
        f"Could not allocate a unique reference number after {attempts} attempts"
    ) from last
