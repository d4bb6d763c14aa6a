"""
Exceptions for the Brink SDK.
"""
from typing import Any, Dict, Optional


class BrinkError(Exception):
    """
    Base exception for all SDK errors.

    Carries an optional context dictionary (operation kind, account address,
    chain id, ...) so a failure can be reproduced from the message alone.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = {k: v for k, v in (context or {}).items() if v is not None}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(BrinkError):
    """Raised when a required environment field or deployment is missing."""
    pass


class InvalidArguments(BrinkError, ValueError):
    """Raised when arguments do not match an operation's parameter list."""
    pass


class InvalidOperationKind(BrinkError):
    """Raised when an operation or call kind is not recognized."""
    pass


class UnsupportedNumericType(BrinkError, ValueError):
    """Raised when a value cannot be normalized to an unsigned integer."""
    pass


class SigningFailed(BrinkError):
    """Raised when the signer collaborator fails to sign a digest."""
    pass


class EstimationFailed(BrinkError):
    """Raised when simulating a resolved call reverts or the provider fails."""

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.reason = reason
        super().__init__(message, context)


class AccountNotDeployed(BrinkError):
    """Raised when an owner-only call targets an account with no code."""
    pass


class AccountAlreadyDeployed(BrinkError):
    """Raised when deploying an account that already has code."""
    pass


class TransactionError(BrinkError):
    """Raised when signing or sending a relayed transaction fails."""
    pass


class ProviderError(BrinkError):
    """Raised when a chain read query fails."""
    pass
