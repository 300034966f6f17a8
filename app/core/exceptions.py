from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )


class DuplicateError(HTTPException):
    """Raised when attempting to create a duplicate resource."""

    def __init__(self, resource: str, field: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{resource} with this {field} already exists",
        )


class ForbiddenError(HTTPException):
    """Raised when user lacks permission to access a resource."""

    def __init__(self, message: str = "Not authorized to access this resource"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message,
        )


class ValidationError(HTTPException):
    """Raised when request validation fails."""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Rule outcomes mapped to HTTP responses
#
# The rules engine returns these outcomes as values. Endpoints translate them
# into distinguishable responses with a machine-readable code so clients never
# need to re-derive offer or code state.
# ─────────────────────────────────────────────────────────────────────────────


class InvalidTransitionError(HTTPException):
    """A moderation action was attempted from a state that does not permit it."""

    def __init__(self, action: str, current_state: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "INVALID_TRANSITION",
                "action": action,
                "current_state": current_state,
                "message": f"Cannot {action} an offer that is {current_state}",
            },
        )


class QuotaExceededError(HTTPException):
    """The merchant's plan does not allow another published offer."""

    def __init__(self, current_count: int, limit: int | None, plan_name: str):
        super().__init__(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "code": "QUOTA_EXCEEDED",
                "current_count": current_count,
                "limit": limit,
                "plan": plan_name,
                "message": f"Your {plan_name} plan allows {limit} published offers "
                f"and you have {current_count}. Upgrade to publish more.",
            },
        )


class CodeRejectedError(HTTPException):
    """A discount code failed validation for this order."""

    def __init__(self, reason: str, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(
            status_code=status_code,
            detail={"code": reason.upper(), "reason": reason, "message": message},
        )
