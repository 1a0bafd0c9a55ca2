"""Domain errors raised by the access layer.

Every error carries an HTTP status and a human-readable detail so the API can
render it without guessing. Nothing here is retried automatically.
"""

from typing import Any, Dict, Optional


class AccessError(Exception):
    status_code = 400
    code = "access_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.detail}


class NotAuthenticated(AccessError):
    status_code = 401
    code = "not_authenticated"


class OrganizationNotFound(AccessError):
    status_code = 404
    code = "organization_not_found"


class InsufficientRole(AccessError):
    status_code = 403
    code = "insufficient_role"


class CrossOrganizationViolation(AccessError):
    status_code = 403
    code = "cross_organization"


class TrialUnavailable(AccessError):
    status_code = 409
    code = "trial_unavailable"


class EvaluationFailed(AccessError):
    """Infrastructure failure while evaluating access. Always treated as denial."""
    status_code = 503
    code = "evaluation_failed"


class LimitReached(AccessError):
    status_code = 402
    code = "limit_reached"

    def __init__(self, detail: str, result: Optional[Any] = None):
        super().__init__(detail)
        self.result = result

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.result is not None:
            payload.update(
                current=self.result.current,
                limit=self.result.limit,
                upgrade_required=self.result.upgrade_required,
            )
        return payload
