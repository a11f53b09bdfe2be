"""
Batch account import: argument checks and per-index result aggregation.
"""

from typing import Any, Dict, List, Optional, Sequence

from shared.errors import ErrorKind, IdentityError, invalid_argument
from ..models import IndexedError, UserImportResult

MAX_UPLOAD_ACCOUNT_BATCH_SIZE = 1000


def validate_import_records(records: Any) -> None:
    if not isinstance(records, (list, tuple)):
        raise invalid_argument("`users` parameter must be an array")
    if len(records) > MAX_UPLOAD_ACCOUNT_BATCH_SIZE:
        raise IdentityError(
            ErrorKind.MAXIMUM_USER_COUNT_EXCEEDED,
            f"A maximum of {MAX_UPLOAD_ACCOUNT_BATCH_SIZE} users can be imported at once.",
        )
    for record in records:
        if not isinstance(record, dict):
            raise invalid_argument("Each user import record must be a non-null object.")


def aggregate_import_results(
    records: Sequence[Dict[str, Any]], errors: Optional[List[Dict[str, Any]]]
) -> UserImportResult:
    indexed: List[IndexedError] = []
    for entry in errors or []:
        index = entry.get("index")
        if index is None:
            raise IdentityError(
                ErrorKind.INTERNAL_ERROR,
                "Corrupt UploadAccountResponse detected",
                {"entry": entry},
            )
        indexed.append(IndexedError(
            index=index,
            error=IdentityError(ErrorKind.INVALID_USER_IMPORT, entry.get("message")),
        ))
    return UserImportResult(
        success_count=len(records) - len(indexed),
        failure_count=len(indexed),
        errors=indexed,
    )
