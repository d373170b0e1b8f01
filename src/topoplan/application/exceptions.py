"""Application layer exceptions."""
from topoplan.domain.base.exceptions import DomainException


class ProviderError(DomainException):
    """
    A single operation failed.

    Recorded on the operation outcome; the executor never raises it out of
    ``apply``.
    """

    def __init__(self, action: str, logical_id: str, cause: BaseException):
        super().__init__(
            f"{action} of '{logical_id}' failed: {cause}",
            "PROVIDER_ERROR",
            {
                "action": action,
                "logical_id": logical_id,
                "cause": str(cause),
                "cause_type": type(cause).__name__,
            },
        )
        self.action = action
        self.logical_id = logical_id
        self.cause = cause


class UnresolvedReferenceError(DomainException):
    """Raised when a reference names an output missing from applied state."""

    def __init__(self, logical_id: str, address: str):
        super().__init__(
            f"Resource '{logical_id}' references '{address}', which has no applied value",
            "UNRESOLVED_REFERENCE",
            {"logical_id": logical_id, "reference": address},
        )
        self.logical_id = logical_id
        self.address = address
