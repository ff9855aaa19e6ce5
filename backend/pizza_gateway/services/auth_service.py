"""
Pizza Gateway — Authentication Service
========================================

What:  The two interchangeable authentication strategies and the login flow.
How:   Each strategy exposes `async verify(headers) -> AuthResult`. The result is
       either a success carrying the caller identity or a tagged failure
       reason; the route dependency in context.py turns failures into 401/403.
Who:   Built once by the ServiceContext from AUTH_STRATEGY.

Strategies:
    BearerTokenAuthenticator  Authorization: Bearer <jwt>   (HS256, PyJWT)
    ApiKeyAuthenticator       x-api-key: <key>              (constant-time compare)

Login (bearer strategy only):
    username → sal.users row → bcrypt check → signed token valid for
    JWT_EXPIRES_MINUTES.
"""

import enum
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import bcrypt
import jwt
from starlette.concurrency import run_in_threadpool

from pizza_gateway.config import Settings
from pizza_gateway.database import Database
from pizza_gateway.exceptions import AuthenticationError, DatabaseError, ValidationError

logger = logging.getLogger(__name__)

USER_LOOKUP_SQL = (
    "SELECT id, username, password_hash FROM {schema}.users WHERE username = :username"
)


class AuthFailure(str, enum.Enum):
    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of one credential check."""

    identity: Optional[Dict[str, Any]] = None
    failure: Optional[AuthFailure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, identity: Dict[str, Any]) -> "AuthResult":
        return cls(identity=identity)

    @classmethod
    def rejected(cls, failure: AuthFailure, detail: str = "") -> "AuthResult":
        return cls(failure=failure, detail=detail)


class Authenticator(ABC):
    """
    Interface shared by both strategies.

    `name` matches the AUTH_STRATEGY value that selects the strategy.
    """

    name: str

    @abstractmethod
    async def verify(self, headers: Mapping[str, str]) -> AuthResult:
        """
        Check the credential carried by the request headers.

        Returns AuthResult.success with the caller identity, or
        AuthResult.rejected with MISSING, INVALID, or EXPIRED. Never raises
        for a bad credential.
        """


class BearerTokenAuthenticator(Authenticator):
    """
    Verifies `Authorization: Bearer <token>` against JWT_SECRET.

    An empty secret rejects every token instead of accepting unsigned ones.
    """

    name = "jwt"

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    @staticmethod
    def extract_token(authorization: Optional[str]) -> Optional[str]:
        # Same split the Express servers used: "<scheme> <token>"
        if not authorization:
            return None
        parts = authorization.split(" ")
        if len(parts) < 2 or not parts[1]:
            return None
        return parts[1]

    async def verify(self, headers: Mapping[str, str]) -> AuthResult:
        token = self.extract_token(headers.get("authorization"))
        if token is None:
            return AuthResult.rejected(AuthFailure.MISSING, "no bearer token")
        if not self.secret:
            return AuthResult.rejected(AuthFailure.INVALID, "JWT_SECRET not configured")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return AuthResult.rejected(AuthFailure.EXPIRED, "token expired")
        except jwt.InvalidTokenError as e:
            return AuthResult.rejected(AuthFailure.INVALID, str(e))
        return AuthResult.success(claims)

    def issue_token(self, user_id: Any, username: str, now: Optional[datetime] = None) -> str:
        """Sign `{id, username, sub, iat, exp}`."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "username": username,
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expires_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)


class ApiKeyAuthenticator(Authenticator):
    """Compares the `x-api-key` header with API_KEY."""

    name = "api_key"
    header_name = "x-api-key"

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def verify(self, headers: Mapping[str, str]) -> AuthResult:
        presented = headers.get(self.header_name)
        if not presented:
            return AuthResult.rejected(AuthFailure.MISSING, "no api key")
        if not self.api_key or not secrets.compare_digest(
            presented.encode("utf-8"), self.api_key.encode("utf-8")
        ):
            return AuthResult.rejected(AuthFailure.INVALID, "api key mismatch")
        return AuthResult.success({"sub": "api-key"})


def build_authenticator(settings: Settings) -> Authenticator:
    if settings.auth_strategy == "api_key":
        return ApiKeyAuthenticator(settings.api_key)
    return BearerTokenAuthenticator(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_expires_minutes,
    )


# ══════════════════════════════════════════════════════════════════════════
# Login
# ══════════════════════════════════════════════════════════════════════════


def check_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Unparseable password hash encountered during login")
        return False


class AuthService:
    """Exchanges a username and password for a signed bearer token."""

    async def login(
        self,
        db: Database,
        authenticator: BearerTokenAuthenticator,
        username: Optional[str],
        password: Optional[str],
    ) -> str:
        missing = [name for name, value in (("username", username), ("password", password))
                   if not value]
        if missing:
            raise ValidationError(
                message=f"Missing required fields: {', '.join(missing)}",
                missing=missing,
            )

        try:
            rows = await db.fetch_all(
                USER_LOOKUP_SQL.format(schema=db.schema),
                {"username": username},
                operation="users lookup",
            )
        except DatabaseError as e:
            # Login never echoes the driver message
            logger.error("Login lookup failed for %s: %s", username, e.message)
            raise DatabaseError(message="Internal server error", context=e.context) from e

        if not rows:
            logger.info("Login rejected: unknown user %s", username)
            raise AuthenticationError(message="Invalid credentials")

        user = rows[0]
        is_valid = await run_in_threadpool(check_password, password, user.get("password_hash"))
        if not is_valid:
            logger.info("Login rejected: bad password for %s", username)
            raise AuthenticationError(message="Invalid credentials")

        logger.info("Login succeeded for %s", user["username"])
        return authenticator.issue_token(user["id"], user["username"])


auth_service = AuthService()
