class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class LeaveBalanceExceededError(ValidationError):
    """Raised when a leave application asks for more days than remain.

    The caller may resubmit with the excess confirmed; the figures here are
    what the applicant needs to see before doing so.
    """

    def __init__(self, message: str, *, remaining: float, excess_days: float, salary_deduction: float):
        super().__init__(message)
        self.remaining = remaining
        self.excess_days = excess_days
        self.salary_deduction = salary_deduction
