# ---------------------------------
# TYPED EXCEPTIONS
# ---------------------------------
from typing import Any


class ShareGateError(RuntimeError):
    """Base error. `kind` is the stable identifier returned to API callers."""

    kind = "internal_error"


class NotFoundError(ShareGateError):
    kind = "not_found"


class ApprovalNotFoundError(NotFoundError):
    def __init__(self, owner_domain_id: str, request_id: str):
        self.owner_domain_id = owner_domain_id
        self.request_id = request_id
        super().__init__(
            f"Approval request '{request_id}' not found for domain '{owner_domain_id}'"
        )


class ResourceNotFoundError(NotFoundError):
    def __init__(self, owner_domain_id: str, resource_key: str):
        self.owner_domain_id = owner_domain_id
        self.resource_key = resource_key
        super().__init__(
            f"Resource '{resource_key}' not found in domain '{owner_domain_id}'"
        )


class InstanceNotFoundError(NotFoundError):
    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Workflow instance '{instance_id}' not found")


class TransactionConflict(ShareGateError):
    """Raised when a precondition of a ledger transaction fails. Safe to retry from scratch.

    `op` is the ledger operation whose precondition failed.
    """

    kind = "transaction_conflict"

    def __init__(self, op: Any, reason: str):
        self.op = op
        self.reason = reason
        super().__init__(
            f"Ledger transaction aborted on {type(op).__name__}({getattr(op, 'table', '?')}): {reason}"
        )


class DuplicateRequestError(ShareGateError):
    """Raised when the resource already has a pending request for the same target domain."""

    kind = "duplicate_request"


class InvalidTokenError(ShareGateError):
    """Raised when a continuation token is unknown or already redeemed."""

    kind = "invalid_token"


class GrantFailure(ShareGateError):
    kind = "grant_failure"


class ClassificationLookupFailure(ShareGateError):
    kind = "classification_lookup_failure"


class AuthorizationError(ShareGateError):
    kind = "forbidden"

    def __init__(self, user_id: str, domain_id: str):
        self.user_id = user_id
        self.domain_id = domain_id
        super().__init__(f"User '{user_id}' does not own domain '{domain_id}'")


class InvalidRequestError(ShareGateError):
    kind = "invalid_request"


class OrchestrationError(ShareGateError):
    """Raised when a workflow instance is asked to make an illegal transition."""

    kind = "orchestration_error"
