from botocore.exceptions import ClientError

CONFLICT_REASONS = {"ConditionalCheckFailed", "TransactionConflict"}


def is_conflict(err: ClientError) -> bool:
    """True when a write was rejected by a condition or a competing transaction."""
    error = err.response.get("Error", {})
    code = error.get("Code")
    if code == "ConditionalCheckFailedException":
        return True
    if code == "TransactionCanceledException":
        reasons = err.response.get("CancellationReasons", [])
        if not reasons:
            # reasons only arrive inside the message for some SDK versions
            message = error.get("Message", "")
            return any(reason in message for reason in CONFLICT_REASONS)
        return any(r.get("Code") in CONFLICT_REASONS for r in reasons)
    return code == "TransactionConflictException"
