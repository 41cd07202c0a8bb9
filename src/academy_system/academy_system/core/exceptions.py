class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ScopeUnavailableError(DomainError):
    """Raised when a role that needs an affiliation (e.g. a supervisor's sede) has none.

    The caller must block the action and ask for the assignment; the scope is
    never widened or narrowed silently.
    """


class ConfigurationError(DomainError):
    """Raised when an identity lacks tenant context (no institution)."""
