"""Helpers for running Firestore transactions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from shuttlebracket.errors import ConflictError

from .constants import TRANSACTION_MAX_ATTEMPTS

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

T = TypeVar("T")


def run_transaction(db: Client, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run ``func(transaction, *args, **kwargs)`` inside a Firestore transaction.

    The client retries a contended transaction once. Contention that survives
    the retry is raised as a ConflictError so callers can report a transient
    failure instead of looping.
    """
    transaction = db.transaction(max_attempts=TRANSACTION_MAX_ATTEMPTS)
    try:
        return firestore.transactional(func)(transaction, *args, **kwargs)
    except (
        google_exceptions.Aborted,
        google_exceptions.AlreadyExists,
        google_exceptions.Conflict,
    ) as e:
        logging.warning(f"Transaction aborted after retry: {e}")
        raise ConflictError() from e
    except ValueError as e:
        # Exhausted retries are reported by the SDK as a ValueError.
        if "attempts" not in str(e):
            raise
        logging.warning(f"Transaction gave up: {e}")
        raise ConflictError() from e
