"""
Batch account deletion: argument checks and per-index result aggregation.
"""

from typing import Any, Dict, List, Optional, Sequence

from shared.errors import ErrorKind, IdentityError, invalid_argument
from shared.logging import get_logger
from ..models import DeleteUsersResult, IndexedError
from ..validation.validators import is_uid

MAX_DELETE_ACCOUNTS_BATCH_SIZE = 1000

logger = get_logger("identity.batch.delete")


def validate_delete_uids(uids: Any) -> None:
    """Fail fast on a delete request, before anything reaches the network."""
    if not isinstance(uids, (list, tuple)):
        raise invalid_argument("`uids` parameter must be an array")
    if not uids:
        raise invalid_argument("`uids` parameter must have at least one entry.")
    if len(uids) > MAX_DELETE_ACCOUNTS_BATCH_SIZE:
        raise invalid_argument(
            f"`uids` parameter must have <= {MAX_DELETE_ACCOUNTS_BATCH_SIZE} entries.",
            count=len(uids),
        )
    for uid in uids:
        if not is_uid(uid):
            raise IdentityError(ErrorKind.INVALID_UID, details={"uid": uid})


def error_from_batch_message(message: Optional[str]) -> IdentityError:
    """Translate a per-index backend message into an error.

    Known fragility: the backend signals this case only through a message
    prefix. Deletions are always forced, so NOT_DISABLED should not occur.
    """
    if message and message.startswith("NOT_DISABLED"):
        return IdentityError(ErrorKind.USER_NOT_DISABLED, message)
    return IdentityError(ErrorKind.INTERNAL_ERROR, message)


def aggregate_delete_results(
    uids: Sequence[str], errors: Optional[List[Dict[str, Any]]]
) -> DeleteUsersResult:
    """Fold the directory's per-index errors into success/failure counts."""
    if not errors:
        return DeleteUsersResult(success_count=len(uids), failure_count=0, errors=[])

    indexed: List[IndexedError] = []
    for entry in errors:
        index = entry.get("index")
        if index is None:
            logger.error("Corrupt batch delete response", entry=entry)
            raise IdentityError(
                ErrorKind.INTERNAL_ERROR,
                "Corrupt BatchDeleteAccountsResponse detected",
            )
        indexed.append(IndexedError(index=index, error=error_from_batch_message(entry.get("message"))))

    return DeleteUsersResult(
        success_count=len(uids) - len(indexed),
        failure_count=len(indexed),
        errors=indexed,
    )
