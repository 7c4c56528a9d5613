"""
Onboarding State Management.

Two kinds of state live here:

- OnboardingDraft: the user's partial answers. Persisted on every mutation so
  a reload picks up where the user left off.
- Step variants: which screen the wizard is on. One variant per step, with the
  flash-sale flag nested inside the offer step so it cannot outlive it.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, ClassVar
import json

from .habits import coerce_number


class ProductType(Enum):
    """What the user is quitting."""
    CIGARETTES = "cigarettes"
    VAPE_DISPOSABLE = "vape_disposable"
    POUCHES = "pouches"
    DIP = "dip"


class DurationBucket(Enum):
    """How long the user has had the habit."""
    UNDER_5Y = "under_5y"
    FROM_5_TO_10Y = "5_to_10y"
    FROM_10_TO_20Y = "10_to_20y"
    OVER_20Y = "over_20y"


def _enum_or_none(enum_cls: type[Enum], value: Any) -> Any:
    """Parse an enum value, returning None for anything unrecognized."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _str_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


# =============================================================================
# Draft
# =============================================================================


@dataclass
class Identity:
    """Step 5 contact fields."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    opt_in_messages: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()

    @classmethod
    def from_dict(cls, data: Any) -> "Identity":
        if not isinstance(data, dict):
            return cls()
        return cls(
            first_name=_str_or_empty(data.get("first_name")),
            last_name=_str_or_empty(data.get("last_name")),
            email=_str_or_empty(data.get("email")),
            phone=_str_or_empty(data.get("phone")),
            opt_in_messages=data.get("opt_in_messages") is True,
        )


@dataclass
class Credentials:
    """
    Step 7 password fields.

    NOTE: persisted in cleartext along with the rest of the draft.
    """
    password: str = ""
    confirm_password: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Credentials":
        if not isinstance(data, dict):
            return cls()
        return cls(
            password=_str_or_empty(data.get("password")),
            confirm_password=_str_or_empty(data.get("confirm_password")),
        )


@dataclass
class OnboardingDraft:
    """
    Partial answer set for an in-progress onboarding session.

    Owned by exactly one StepController. Every field has a zero value so a
    missing or renamed key in persisted data simply falls back to it.
    """
    product_type: ProductType | None = None
    daily_usage: float = 0.0
    unit_cost: float = 0.0
    duration_bucket: DurationBucket | None = None
    identity: Identity = field(default_factory=Identity)
    credentials: Credentials = field(default_factory=Credentials)
    declined_initial_offer: bool = False

    def to_dict(self) -> dict:
        """Serialize draft to dict for JSON storage."""
        data = asdict(self)
        data["product_type"] = self.product_type.value if self.product_type else None
        data["duration_bucket"] = self.duration_bucket.value if self.duration_bucket else None
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "OnboardingDraft":
        """
        Deserialize a draft, tolerating anything.

        Unknown keys are ignored, wrong-typed values fall back to defaults,
        numeric fields go through the same coercion as user input.
        """
        if not isinstance(data, dict):
            return cls()

        duration = data.get("duration_bucket")
        return cls(
            product_type=_enum_or_none(ProductType, data.get("product_type")),
            daily_usage=coerce_number(data.get("daily_usage")),
            unit_cost=coerce_number(data.get("unit_cost")),
            duration_bucket=_enum_or_none(DurationBucket, duration),
            identity=Identity.from_dict(data.get("identity")),
            credentials=Credentials.from_dict(data.get("credentials")),
            declined_initial_offer=data.get("declined_initial_offer") is True,
        )

    def to_json(self) -> str:
        """Serialize draft to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "OnboardingDraft":
        """Deserialize draft from JSON string. Raises on malformed JSON."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class AuthSession:
    """Opaque login result: the registry's user record plus a bearer token."""
    user: dict
    token: str


@dataclass
class HabitRecord:
    """Habit record as echoed back by the registry."""
    quit_date: str
    product_type: str
    daily_usage: int
    cost: float
    reasons: list[str] = field(default_factory=list)
    triggers: list[str] = field(default_factory=list)
    id: str | None = None


# =============================================================================
# Steps
# =============================================================================

TOTAL_STEPS = 7


@dataclass(frozen=True, eq=False)
class Step:
    """
    Base for step variants.

    Instances compare by identity: each entry into a step creates a new
    object, so an async result can check it still belongs to the step that
    issued it.
    """
    number: ClassVar[int] = 0
    can_go_back: ClassVar[bool] = False
    name: ClassVar[str] = ""

    @property
    def progress_fraction(self) -> float:
        return self.number / TOTAL_STEPS


@dataclass(frozen=True, eq=False)
class ChooseProduct(Step):
    number: ClassVar[int] = 1
    name: ClassVar[str] = "choose_product"


@dataclass(frozen=True, eq=False)
class ChooseDailyUsage(Step):
    number: ClassVar[int] = 2
    can_go_back: ClassVar[bool] = True
    name: ClassVar[str] = "choose_daily_usage"


@dataclass(frozen=True, eq=False)
class ChooseUnitCost(Step):
    number: ClassVar[int] = 3
    can_go_back: ClassVar[bool] = True
    name: ClassVar[str] = "choose_unit_cost"


@dataclass(frozen=True, eq=False)
class ChooseDuration(Step):
    number: ClassVar[int] = 4
    can_go_back: ClassVar[bool] = True
    name: ClassVar[str] = "choose_duration"


@dataclass(frozen=True, eq=False)
class EnterIdentity(Step):
    number: ClassVar[int] = 5
    can_go_back: ClassVar[bool] = True
    name: ClassVar[str] = "enter_identity"


@dataclass(frozen=True, eq=False)
class Offer(Step):
    """Step 6. flash_sale=True is the discounted second offer after a decline."""
    number: ClassVar[int] = 6
    name: ClassVar[str] = "offer"
    flash_sale: bool = False


@dataclass(frozen=True, eq=False)
class CreateCredentials(Step):
    number: ClassVar[int] = 7
    name: ClassVar[str] = "create_credentials"


@dataclass(frozen=True, eq=False)
class Provisioned(Step):
    """Terminal: account and habit record both exist."""
    number: ClassVar[int] = 7
    name: ClassVar[str] = "provisioned"
    account: AuthSession | None = None
    habit_record: HabitRecord | None = None


# Forward order for S1..S5 auto-advance and back navigation
STEP_SEQUENCE: list[type[Step]] = [
    ChooseProduct,
    ChooseDailyUsage,
    ChooseUnitCost,
    ChooseDuration,
    EnterIdentity,
    Offer,
    CreateCredentials,
]


def next_step_type(step: Step) -> type[Step]:
    """Step type that follows `step` in the linear part of the funnel."""
    idx = STEP_SEQUENCE.index(type(step))
    return STEP_SEQUENCE[min(idx + 1, len(STEP_SEQUENCE) - 1)]


def previous_step_type(step: Step) -> type[Step]:
    """Step type that precedes `step`. Only meaningful when can_go_back."""
    idx = STEP_SEQUENCE.index(type(step))
    return STEP_SEQUENCE[max(idx - 1, 0)]
