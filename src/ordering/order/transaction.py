"""Run a command as one atomic unit of work, retrying on concurrency conflicts.

The command handler's ``@handle`` wraps the whole write sequence in a Protean
unit of work: any exception rolls everything back. Failures raised while the
unit of work commits reach the caller as Protean's ``TransactionError``, with
the name of the underlying exception in ``extra_info``. This module decides
what happens next:

- ``ConcurrencyConflict``, an aggregate version mismatch or a uniqueness
  violation (a concurrent order took the same number or the same day's counter
  row), whether raised mid-unit or at commit: the whole unit is run again from
  scratch, up to ``max_attempts`` times.
- Any other storage failure: ``TransactionError``.
- Domain errors (validation, not found, insufficient stock): re-raised as is.
"""

from protean.exceptions import ExpectedVersionError, ValidationError
from protean.exceptions import TransactionError as CommitError
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ordering.errors import ConcurrencyConflict, TransactionError
from ordering.utils.logging import get_logger
from ordering.utils.settings import placement_max_attempts

logger = get_logger(__name__)

# Fields whose uniqueness violations come from a lost allocation race
_RETRYABLE_UNIQUE_FIELDS = {"order_number", "key"}

# Commit failures that a fresh attempt can get past
_RETRYABLE_COMMIT_FAILURES = {"IntegrityError"}


def _is_uniqueness_race(exc: ValidationError) -> bool:
    messages = exc.messages if isinstance(exc.messages, dict) else {}
    return any(name in messages for name in _RETRYABLE_UNIQUE_FIELDS)


def _is_retryable_commit_failure(exc: CommitError) -> bool:
    extra_info = exc.extra_info or {}
    if extra_info.get("original_exception") in _RETRYABLE_COMMIT_FAILURES:
        return True
    return isinstance(exc.__cause__, IntegrityError)


def process_atomically(command, max_attempts: int | None = None):
    """Process ``command`` synchronously and return the handler's result."""
    attempts = max_attempts or placement_max_attempts()
    command_name = command.__class__.__name__
    last_error = None

    for attempt in range(1, attempts + 1):
        try:
            return current_domain.process(command, asynchronous=False)
        except (ConcurrencyConflict, ExpectedVersionError, IntegrityError) as exc:
            last_error = exc
        except ValidationError as exc:
            if not _is_uniqueness_race(exc):
                raise
            last_error = exc
        except CommitError as exc:
            if not _is_retryable_commit_failure(exc):
                logger.error("command_commit_failure", command=command_name, error=str(exc))
                raise TransactionError() from exc
            last_error = exc
        except SQLAlchemyError as exc:
            logger.error("command_storage_failure", command=command_name, error=str(exc))
            raise TransactionError() from exc

        logger.warning(
            "command_retry_after_conflict",
            command=command_name,
            attempt=attempt,
            max_attempts=attempts,
            error=str(last_error),
        )

    logger.error("command_retries_exhausted", command=command_name, attempts=attempts)
    raise TransactionError() from last_error
