"""
Account Registry Gateways.

Async HTTP clients for the external account registry:

- EmailUniquenessGateway: is this email already registered?
- AccountProvisioningGateway: sign up, then create the habit record.

All httpx exceptions are translated into the onboarding error taxonomy here.
Nothing above this module imports httpx.
"""

import logging
from enum import Enum
from typing import Any, Protocol

import httpx

from .errors import DuplicateEmailError, NetworkError, ValidationError
from .forms import CheckEmailRequest, HabitRecordRequest, SignUpRequest
from .state import AuthSession, HabitRecord

logger = logging.getLogger(__name__)

CHECK_EMAIL_PATH = "/auth/check-email"
SIGNUP_PATH = "/auth/signup"
DEFAULT_HABIT_RECORD_PATH = "/quit-attempts"


class EmailStatus(Enum):
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class EmailChecker(Protocol):
    async def check_exists(self, email: str) -> EmailStatus: ...


class AccountProvisioner(Protocol):
    async def sign_up(self, email: str, password: str, display_name: str) -> AuthSession: ...

    async def create_habit_record(self, token: str, request: HabitRecordRequest) -> HabitRecord: ...


# =============================================================================
# Shared HTTP plumbing
# =============================================================================


def _error_text(response: httpx.Response, default: str) -> str:
    """Extract the registry's {"error": "..."} message, if any."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return default


class _RegistryGateway:
    """
    Base for registry gateways.

    Owns an httpx.AsyncClient unless one is passed in. Passing a client lets
    callers share a connection pool or inject httpx.MockTransport in tests.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _post(self, path: str, json: dict, headers: dict | None = None) -> httpx.Response:
        """POST and return the response. Transport failures become NetworkError."""
        try:
            return await self._client.post(path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning(f"Registry timeout on {path}: {e}")
            raise NetworkError("The server took too long to respond") from e
        except httpx.HTTPError as e:
            logger.warning(f"Registry transport error on {path}: {e}")
            raise NetworkError("Could not reach the server") from e

    @staticmethod
    def _json_object(response: httpx.Response, path: str) -> dict:
        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError(f"Malformed response from {path}") from e
        if not isinstance(body, dict):
            raise NetworkError(f"Malformed response from {path}")
        return body


# =============================================================================
# Email Uniqueness
# =============================================================================


class EmailUniquenessGateway(_RegistryGateway):
    """POST /auth/check-email -> {exists: bool}."""

    async def check_exists(self, email: str) -> EmailStatus:
        """
        Ask the registry whether `email` is taken.

        Raises:
            NetworkError: transport failure, non-2xx status, or a body
                without a boolean `exists`.
        """
        payload = CheckEmailRequest(email=email).model_dump()
        response = await self._post(CHECK_EMAIL_PATH, json=payload)

        if not response.is_success:
            logger.warning(f"check-email returned HTTP {response.status_code}")
            raise NetworkError(f"HTTP error! status: {response.status_code}")

        body = self._json_object(response, CHECK_EMAIL_PATH)
        exists = body.get("exists")
        if not isinstance(exists, bool):
            raise NetworkError(f"Malformed response from {CHECK_EMAIL_PATH}")

        return EmailStatus.EXISTS if exists else EmailStatus.NOT_EXISTS


# =============================================================================
# Account Provisioning
# =============================================================================


class AccountProvisioningGateway(_RegistryGateway):
    """
    Two-phase provisioning: signup, then habit record.

    The phases are independent calls. If the second fails the account from
    the first stays; there is no rollback.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        habit_record_path: str = DEFAULT_HABIT_RECORD_PATH,
    ):
        super().__init__(base_url=base_url, timeout=timeout, client=client)
        self.habit_record_path = habit_record_path

    async def sign_up(self, email: str, password: str, display_name: str) -> AuthSession:
        """
        Create the account.

        Raises:
            DuplicateEmailError: 409, or an error mentioning "already".
            ValidationError: 400 / 422 with the server's message.
            NetworkError: anything else that is not a success.
        """
        payload = SignUpRequest(email=email, password=password, username=display_name).model_dump()
        response = await self._post(SIGNUP_PATH, json=payload)

        if not response.is_success:
            message = _error_text(response, "Signup failed")
            status = response.status_code
            logger.info(f"Signup rejected ({status}): {message}")
            if status == 409 or "already" in message.lower():
                raise DuplicateEmailError(message)
            if status in (400, 422):
                raise ValidationError(message)
            raise NetworkError(message)

        body = self._json_object(response, SIGNUP_PATH)
        user = body.get("user")
        token = body.get("token")
        if not isinstance(user, dict) or not isinstance(token, str) or not token:
            raise NetworkError(f"Malformed response from {SIGNUP_PATH}")

        return AuthSession(user=user, token=token)

    async def create_habit_record(self, token: str, request: HabitRecordRequest) -> HabitRecord:
        """
        Create the habit record for a freshly signed-up user.

        Raises:
            ValidationError: 400 / 422 with the server's message.
            NetworkError: anything else that is not a success.
        """
        response = await self._post(
            self.habit_record_path,
            json=request.to_wire(),
            headers={"Authorization": f"Bearer {token}"},
        )

        if not response.is_success:
            message = _error_text(response, "Could not save your quit plan")
            logger.info(f"Habit record rejected ({response.status_code}): {message}")
            if response.status_code in (400, 422):
                raise ValidationError(message)
            raise NetworkError(message)

        body = self._json_object(response, self.habit_record_path)
        try:
            return _habit_record_from_body(body, request)
        except (TypeError, ValueError) as e:
            raise NetworkError(f"Malformed response from {self.habit_record_path}") from e


def _habit_record_from_body(body: dict, request: HabitRecordRequest) -> HabitRecord:
    """Build a HabitRecord from the reply, filling gaps from what was sent."""
    sent = request.to_wire()

    def pick(key: str) -> Any:
        value = body.get(key)
        return sent[key] if value is None else value

    record_id = body.get("id")
    return HabitRecord(
        quit_date=str(pick("quitDate")),
        product_type=str(pick("productType")),
        daily_usage=int(pick("dailyUsage")),
        cost=float(pick("cost")),
        reasons=list(pick("reasons")),
        triggers=list(pick("triggers")),
        id=str(record_id) if record_id is not None else None,
    )
