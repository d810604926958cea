class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a principal lacks the capability for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class InvalidRelationError(DomainError):
    """Raised when two referenced entities do not belong together."""


class NoActiveTermError(DomainError):
    """Raised when an operation needs the active term before one is set."""


class ConcurrencyConflictError(DomainError):
    """Raised when a concurrent write won and ours would overwrite it."""


INVALID_TOKEN_MESSAGE = "Invalid attendance token"


class InvalidTokenError(DomainError):
    """Base for every attendance-token rejection.

    Subclasses carry the internal reason for logging; ``public_message`` is
    identical for all of them.
    """

    public_message = INVALID_TOKEN_MESSAGE


class MalformedPayloadError(InvalidTokenError):
    pass


class InvalidSignatureError(InvalidTokenError):
    pass


class InactiveTermError(InvalidTokenError):
    pass


class TokenNotFoundError(InvalidTokenError):
    pass
