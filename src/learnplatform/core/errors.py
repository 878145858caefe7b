"""Typed failures raised by the platform core.

Every failure carries a stable ``kind`` string (used by the web layer and the
CLI to report it) and, where one applies, the offending ``field``.

All errors are recoverable by the caller: an operation that raises has made
no change to platform state.
"""

from __future__ import annotations


class PlatformError(Exception):
    """Base class for all platform core failures."""

    kind: str = "PlatformError"

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for API responses."""
        return {"error": self.kind, "detail": self.message, "field": self.field}


class NotRegisteredError(PlatformError):
    """Raised when an address has no user profile."""

    kind = "NotRegistered"

    def __init__(self, address: str, field: str = "address"):
        self.address = address
        super().__init__(f"Address '{address}' is not registered", field=field)


class AlreadyRegisteredError(PlatformError):
    """Raised when an address registers a second time."""

    kind = "AlreadyRegistered"

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Address '{address}' is already registered", field="address")


class UsernameTakenError(PlatformError):
    """Raised when a username is already used by another profile."""

    kind = "UsernameTaken"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username '{username}' is already taken", field="username")


class InvalidUsernameError(PlatformError):
    kind = "InvalidUsername"

    def __init__(self, username: str):
        self.username = username
        super().__init__("Username must not be empty", field="username")


class NotInstructorError(PlatformError):
    """Raised when a non-instructor tries to publish a skill."""

    kind = "NotInstructor"

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Address '{address}' is not an instructor", field="instructor")


class InvalidPriceError(PlatformError):
    kind = "InvalidPrice"

    def __init__(self, price: int):
        self.price = price
        super().__init__(
            f"Price must be positive and within the token range (got {price})", field="price"
        )


class SkillNotFoundError(PlatformError):
    kind = "SkillNotFound"

    def __init__(self, skill_id: int):
        self.skill_id = skill_id
        super().__init__(f"Skill {skill_id} not found", field="skill_id")


class SkillInactiveError(PlatformError):
    kind = "SkillInactive"

    def __init__(self, skill_id: int):
        self.skill_id = skill_id
        super().__init__(f"Skill {skill_id} is not active", field="skill_id")


class SelfEnrollmentError(PlatformError):
    """Raised when an instructor tries to enrol in their own skill."""

    kind = "SelfEnrollment"

    def __init__(self, address: str, skill_id: int):
        self.address = address
        self.skill_id = skill_id
        super().__init__(
            f"Instructor '{address}' cannot enrol in own skill {skill_id}",
            field="student",
        )


class InsufficientBalanceError(PlatformError):
    kind = "InsufficientBalance"

    def __init__(self, account: str, balance: int, required: int):
        self.account = account
        self.balance = balance
        self.required = required
        super().__init__(
            f"Account '{account}' has balance {balance}, needs {required}",
            field="amount",
        )


class InvalidStateError(PlatformError):
    """Raised when a session is not in the state an operation requires."""

    kind = "InvalidState"

    def __init__(self, session_id: int, state: str):
        self.session_id = session_id
        self.state = state
        super().__init__(f"Session {session_id} is {state}", field="session_id")


class SessionNotFoundError(PlatformError):
    kind = "SessionNotFound"

    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found", field="session_id")


class InvalidRatingError(PlatformError):
    kind = "InvalidRating"

    def __init__(self, rating: int, low: int, high: int):
        self.rating = rating
        super().__init__(
            f"Rating must be between {low} and {high} (got {rating})", field="rating"
        )


class InvalidScoreError(PlatformError):
    kind = "InvalidScore"

    def __init__(self, score: int):
        self.score = score
        super().__init__(
            f"Assessment score must be between 0 and 100 (got {score})",
            field="assessment_score",
        )


class UnauthorizedError(PlatformError):
    """Raised when the caller lacks authority for an operation."""

    kind = "Unauthorized"

    def __init__(self, caller: str, action: str, field: str = "by"):
        self.caller = caller
        self.action = action
        super().__init__(f"'{caller}' is not allowed to {action}", field=field)


class InvalidAmountError(PlatformError):
    kind = "InvalidAmount"

    def __init__(self, amount: int):
        self.amount = amount
        super().__init__(
            f"Amount must be positive and within the token range (got {amount})", field="amount"
        )


class StateFileError(Exception):
    """Raised when the persisted platform state cannot be read."""
