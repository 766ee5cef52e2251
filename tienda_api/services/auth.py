"""Credential issuer: verifies a login and signs an access token."""
from starlette.concurrency import run_in_threadpool

from tienda_api.core.errors import AccountDisabledError, AuthenticationError
from tienda_api.core.logging import get_logger, LogTimer
from tienda_api.core.security import create_access_token, verify_password
from tienda_api.domain.user import LoginResponse, LoginUser
from tienda_api.infrastructure.repositories import UserRepository
from tienda_api.services.common import store_errors

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DISABLED = "Usuario inactivo. Por favor, contacte al soporte."


class AuthService:
    """Login against the users collection."""

    def __init__(self, repo: UserRepository):
        self.repo = repo

    async def login(self, email: str, password: str) -> LoginResponse:
        """Authenticate ``email`` / ``password`` and issue a token.

        Unknown email and wrong password fail with the same error so callers
        cannot probe which emails exist. A soft-deleted account fails with a
        distinct 403.

        Raises:
            AuthenticationError: Unknown email or wrong password (401)
            AccountDisabledError: Account exists but is inactive (403)
        """
        with LogTimer(logger, "auth.login"):
            with store_errors("iniciar sesión"):
                record = await self.repo.get_by_email(email)

            if record is None:
                logger.warning(f"Login attempt for non-existent user: {email}")
                raise AuthenticationError(INVALID_CREDENTIALS)

            if not record.get("activo"):
                logger.warning(f"Login attempt for inactive user: {email}", extra={"user_id": record["id"]})
                raise AccountDisabledError(ACCOUNT_DISABLED, context={"id": record["id"]})

            if not await run_in_threadpool(verify_password, password, record.get("password")):
                logger.warning(f"Invalid password for user: {email}", extra={"user_id": record["id"]})
                raise AuthenticationError(INVALID_CREDENTIALS)

            token = create_access_token(record["id"], record["email"])
            logger.info(f"User authenticated successfully: {email}", extra={"user_id": record["id"]})

        return LoginResponse(token=token, user=LoginUser(id=record["id"], email=record["email"]))
