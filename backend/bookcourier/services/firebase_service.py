"""
BookCourier Backend — Firebase Identity Provider
==================================================

What:  Verifies Firebase Authentication ID tokens presented as bearer tokens.
How:   Delegates signature/expiry/audience checks to the firebase-admin SDK,
       with retry on transient key-fetch failures and a circuit breaker that
       fails fast while Google's key endpoint is unreachable.
Who:   Built once by AppContext.from_settings(); called by the auth gate.

Resilience Strategy:
    1. The SDK call is blocking (it may download signing certificates), so it
       runs in a worker thread to keep the event loop free
    2. Tenacity retries CertificateFetchError with exponential backoff + jitter
    3. Circuit breaker opens after consecutive provider failures
    4. Rejected tokens are NOT provider failures: they never trip the breaker
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from bookcourier.config import Settings
from bookcourier.exceptions import (
    CircuitBreakerOpenError,
    IdentityServiceError,
    UnauthorizedError,
)
from bookcourier.services.identity_base import Identity, IdentityProvider

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "bookcourier"


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding calls to the identity provider.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN
        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN
        HALF_OPEN (testing recovery)
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; every caller runs on the single event loop thread.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 30):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Check if a call is allowed through.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Identity circuit breaker HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=max(remaining, 1))

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Identity circuit breaker CLOSED (provider recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Identity circuit breaker back to OPEN (probe failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Identity circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Firebase Identity Provider
# ══════════════════════════════════════════════════════════════════════════

class FirebaseIdentityProvider(IdentityProvider):
    """
    Identity provider backed by Firebase Authentication.

    Error Handling Chain:
        InvalidIdTokenError (expired, revoked, bad signature) → UnauthorizedError
        UserDisabledError / UserNotFoundError (revocation)     → UnauthorizedError
        CertificateFetchError → retried → exhausted → IdentityServiceError
        ValueError (misconfiguration) / other FirebaseError    → IdentityServiceError
        Breaker threshold reached → CircuitBreakerOpenError until recovery
    """

    def __init__(
        self,
        firebase_app: Any = None,
        check_revoked: bool = False,
        max_attempts: int = 3,
        min_wait: float = 0.5,
        max_wait: float = 4,
        failure_threshold: int = 5,
        recovery_timeout: int = 30,
    ):
        self.firebase_app = firebase_app
        self.check_revoked = check_revoked
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirebaseIdentityProvider":
        """
        Initialize a named Firebase app from settings and wrap it.

        A named app (not the SDK default) keeps repeated app factories in the
        same process from colliding on the global default app.
        """
        if settings.firebase_credentials_path:
            credential = credentials.Certificate(settings.firebase_credentials_path)
        else:
            credential = credentials.ApplicationDefault()

        options = {}
        if settings.firebase_project_id:
            options["projectId"] = settings.firebase_project_id

        try:
            firebase_app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            firebase_app = firebase_admin.initialize_app(
                credential, options or None, name=FIREBASE_APP_NAME
            )

        logger.info(
            "FirebaseIdentityProvider initialized (project=%s, check_revoked=%s)",
            settings.firebase_project_id or "<from credentials>",
            settings.firebase_check_revoked,
        )
        return cls(
            firebase_app=firebase_app,
            check_revoked=settings.firebase_check_revoked,
            max_attempts=settings.identity_retry_max_attempts,
            min_wait=settings.identity_retry_min_wait,
            max_wait=settings.identity_retry_max_wait,
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    async def verify_token(self, token: str) -> Identity:
        if not isinstance(token, str) or not token:
            raise UnauthorizedError(reason="empty_token")

        self.circuit_breaker.can_execute()

        try:
            claims = await self._verify_with_retry(token)
        except auth.CertificateFetchError as e:
            self.circuit_breaker.record_failure()
            logger.error("Firebase certificate fetch failed after retries: %s", str(e))
            raise IdentityServiceError(
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"attempts": self.max_attempts},
            )
        except (auth.InvalidIdTokenError, auth.UserDisabledError, auth.UserNotFoundError) as e:
            # The provider answered; only the credential is bad
            self.circuit_breaker.record_success()
            raise UnauthorizedError(reason=type(e).__name__)
        except ValueError as e:
            # Token input was checked above, so this is SDK misconfiguration
            # (e.g. no project id under application default credentials)
            self.circuit_breaker.record_failure()
            logger.error("Firebase token verification misconfigured: %s", str(e))
            raise IdentityServiceError(
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"error_type": "configuration"},
            )
        except firebase_exceptions.FirebaseError as e:
            # Revocation lookups (check_revoked) reach the user management API
            self.circuit_breaker.record_failure()
            logger.error("Firebase call failed: %s (%s)", type(e).__name__, str(e))
            raise IdentityServiceError(
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"error_type": type(e).__name__},
            )

        self.circuit_breaker.record_success()
        return self._identity_from_claims(claims)

    async def _verify_with_retry(self, token: str) -> Dict[str, Any]:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(auth.CertificateFetchError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.min_wait, max=self.max_wait)
            + wait_random(0, self.min_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await asyncio.to_thread(
                    auth.verify_id_token,
                    token,
                    app=self.firebase_app,
                    check_revoked=self.check_revoked,
                )

    @staticmethod
    def _identity_from_claims(claims: Dict[str, Any]) -> Identity:
        email = claims.get("email")
        if not email:
            # Phone/anonymous sign-ins carry no email; users are keyed by email
            raise UnauthorizedError(reason="missing_email_claim")
        return Identity(
            uid=claims.get("uid") or claims.get("sub") or "",
            email=email,
            name=claims.get("name"),
            claims=claims,
        )

    async def health_check(self) -> bool:
        return self.circuit_breaker.state != CircuitBreaker.OPEN

    async def close(self) -> None:
        if self.firebase_app is not None:
            firebase_admin.delete_app(self.firebase_app)
            self.firebase_app = None
