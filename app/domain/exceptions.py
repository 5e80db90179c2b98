from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class InvalidInputError(DomainError, ValueError):
    """Missing or malformed input fields."""


class DuplicateUsernameError(DomainError):
    """Username is already taken by another account."""


class InvalidCredentialsError(DomainError):
    """Unknown username or wrong password. Deliberately does not say which."""


class UnauthenticatedError(DomainError):
    """No session, or the session expired or was destroyed."""


class FederatedIdentityError(DomainError):
    """External identity could not be verified or resolved to an account."""


class FederatedIdentityConflictError(FederatedIdentityError):
    """Federated id is already attached elsewhere, or the target account is linked to another one."""


class CounterNotLoadedError(DomainError):
    """Counter was mutated before the authoritative value was loaded."""
