"""
BookCourier Backend — Abstract Identity Provider Interface
============================================================

What:  Contract for services that turn a bearer token into a verified identity.
How:   Concrete providers inherit from IdentityProvider and implement
       verify_token(). The authorization gate only sees this interface.
Who:   Called by bookcourier.auth for every protected request.

Implementations:
    - FirebaseIdentityProvider: Firebase Authentication ID tokens (production)
    - Test suites supply a stub mapping fixed tokens to identities
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Identity:
    """Decoded, verified caller identity."""

    uid: str
    email: str
    name: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def display_name(self) -> str:
        return self.name or "User"


class IdentityProvider(ABC):
    """
    Abstract interface for bearer-token verification.

    Contract:
        - verify_token() returns an Identity with a non-empty email
        - Rejected credentials raise UnauthorizedError
        - Provider outages raise IdentityServiceError or
          CircuitBreakerOpenError, never UnauthorizedError
    """

    @abstractmethod
    async def verify_token(self, token: str) -> Identity:
        """
        Verify a bearer token and return the caller's identity.

        Args:
            token: Raw token string from the Authorization header.

        Raises:
            UnauthorizedError: Token invalid, expired, revoked or missing email.
            IdentityServiceError: Provider unreachable after retries.
            CircuitBreakerOpenError: Too many recent provider failures.
        """

    async def health_check(self) -> bool:
        """Report whether the provider is currently usable."""
        return True

    async def close(self) -> None:
        """Release provider resources at shutdown."""
        return None
