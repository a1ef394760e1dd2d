from typing import List, Optional

# GenerationFailed.reason values
TIMEOUT = "timeout"
NETWORK = "network"
RATE_LIMITED = "rate_limited"
UPSTREAM_ERROR = "upstream_error"
QUOTA_EXHAUSTED = "quota_exhausted"
REQUEST_REJECTED = "request_rejected"
MALFORMED_RESPONSE = "malformed_response"
NOT_CONFIGURED = "not_configured"
INVALID_REQUEST = "invalid_request"


class GenerationFailed(Exception):
    """The remote generator could not produce a usable result.

    ``transient`` failures (timeouts, rate limits, upstream outages) are safe to
    retry as-is; terminal ones need a configuration change or new user input.
    """

    def __init__(self, message: str, *, reason: str, transient: bool = False,
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.transient = transient
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message, "reason": self.reason, "retryable": self.transient}


class ExecutionPartialFailure(Exception):
    """Raised on request when a plan ran but some of its actions were skipped."""

    def __init__(self, errors: List[str]):
        super().__init__(f"{len(errors)} action(s) could not be applied")
        self.errors = list(errors)
