"""
Onboarding Forms.

Pydantic models for the two free-text steps (identity, credentials) and for
the request bodies sent to the account registry.

Validation messages are user-facing: the controller shows them inline.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from .habits import coerce_number, round_half_up
from .state import OnboardingDraft


MIN_PASSWORD_LENGTH = 8

# Habit-record "cost" is the cost input spread over a 30-day month
COST_DIVISOR = 30

PASSWORDS_DO_NOT_MATCH = "Passwords do not match"
PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"


# =============================================================================
# Step Forms
# =============================================================================


class IdentityForm(BaseModel):
    """Step 5: who the user is. First name, last name and email are required."""

    first_name: str
    last_name: str
    email: str
    phone: str = ""
    opt_in_messages: bool = False

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def required_text(cls, v: str, info) -> str:
        """Strip and reject blank values."""
        v = (v or "").strip()
        if not v:
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f"{label} is required")
        return v

    @field_validator("phone", mode="before")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        return (v or "").strip()


class CredentialsForm(BaseModel):
    """Step 7: password and its confirmation."""

    password: str = Field(description="Account password, stored by the registry")
    confirm_password: str

    @model_validator(mode="after")
    def passwords_valid(self) -> "CredentialsForm":
        # Same order as the submit handler: mismatch first, then length
        if self.password != self.confirm_password:
            raise ValueError(PASSWORDS_DO_NOT_MATCH)
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValueError(PASSWORD_TOO_SHORT)
        return self


def first_error_message(exc: PydanticValidationError) -> str:
    """Pull a display message out of a pydantic ValidationError."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    msg = errors[0].get("msg", "")
    return msg.removeprefix("Value error, ")


def credential_hints(password: str, confirm_password: str) -> list[str]:
    """
    Inline hints shown while the user types.

    Only complain about a field once the user has typed into it.
    """
    hints = []
    if password and len(password) < MIN_PASSWORD_LENGTH:
        hints.append(PASSWORD_TOO_SHORT)
    if confirm_password and password != confirm_password:
        hints.append(PASSWORDS_DO_NOT_MATCH)
    return hints


def credentials_ready(password: str, confirm_password: str) -> bool:
    """Whether the submit action should be enabled."""
    return (
        len(password) >= MIN_PASSWORD_LENGTH
        and bool(confirm_password)
        and password == confirm_password
    )


# =============================================================================
# Registry Request Bodies
# =============================================================================


class CheckEmailRequest(BaseModel):
    email: str


class SignUpRequest(BaseModel):
    """POST /auth/signup body."""
    email: str
    password: str
    username: str


class HabitRecordRequest(BaseModel):
    """
    Habit-record creation body.

    Field names go over the wire in camelCase (quitDate, productType, ...).
    """

    model_config = ConfigDict(populate_by_name=True)

    quit_date: str = Field(alias="quitDate")
    product_type: str = Field(alias="productType")
    daily_usage: int = Field(alias="dailyUsage", ge=0)
    cost: float = Field(ge=0)
    reasons: list[str] = Field(default_factory=list)
    triggers: list[str] = Field(default_factory=list)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


def _iso_now() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_habit_record_request(
    draft: OnboardingDraft,
    quit_date: str | None = None,
) -> HabitRecordRequest:
    """
    Build the habit record sent after signup.

    Quit date is "now". Daily usage is rounded to a whole number. Reasons and
    triggers are collected later in the app, so they start empty.
    """
    if draft.product_type is None:
        raise ValueError("Product type is required")

    daily = coerce_number(draft.daily_usage)
    cost = coerce_number(draft.unit_cost) / COST_DIVISOR

    return HabitRecordRequest(
        quit_date=quit_date or _iso_now(),
        product_type=draft.product_type.value,
        daily_usage=round_half_up(daily),
        cost=cost,
        reasons=[],
        triggers=[],
    )


def validate_for_finalize(draft: OnboardingDraft) -> tuple[bool, list[str]]:
    """
    Check everything finalize needs before any network call.

    Returns:
        (is_valid, error_messages)
    """
    errors = []
    identity = draft.identity

    if (
        draft.product_type is None
        or not identity.display_name
        or not identity.email.strip()
        or not draft.credentials.password
    ):
        errors.append("Please complete all required fields")
        return (False, errors)

    try:
        CredentialsForm(
            password=draft.credentials.password,
            confirm_password=draft.credentials.confirm_password,
        )
    except PydanticValidationError as e:
        errors.append(first_error_message(e))

    return (len(errors) == 0, errors)
