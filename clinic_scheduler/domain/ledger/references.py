import logging

from ...shared.exceptions import StaleReferenceError

logger = logging.getLogger(__name__)


def report_missing_reference(operation: str, kind: str, ref_id, *, strict: bool) -> None:
    """
    Handle a referenced row that vanished before a ledger update could touch it.

    Lenient mode logs and lets the operation carry on without that update;
    strict mode aborts the transaction with StaleReferenceError.
    """
    if strict:
        raise StaleReferenceError(
            f"{kind.capitalize()} {ref_id} no longer exists",
            details={"operation": operation, kind + "Id": ref_id},
        )
    logger.warning(f"⚠️ {operation}: {kind} {ref_id} no longer exists, skipping its update")
