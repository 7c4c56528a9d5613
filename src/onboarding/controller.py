"""
Onboarding Step Controller.

Finite-state machine for the seven-step onboarding funnel:

    1 product -> 2 daily usage -> 3 unit cost -> 4 duration
      -> 5 identity (gated on the email uniqueness check)
      -> 6 offer (decline -> flash sale, still step 6)
      -> 7 credentials -> provisioned

Every input mutates the draft and the draft is saved immediately. Steps 1-4
auto-advance after a short delay. Network results and delayed advances are
only applied if the controller is still on the step object that issued them.
"""

import asyncio
import logging
import time
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Protocol

from pydantic import ValidationError as PydanticValidationError

from .draft_store import DraftStore
from .errors import OnboardingError, StepError, ValidationError
from .forms import (
    IdentityForm,
    build_habit_record_request,
    credential_hints,
    credentials_ready,
    first_error_message,
    validate_for_finalize,
)
from .gateways import AccountProvisioner, EmailChecker, EmailStatus
from .habits import HabitStats, coerce_number, stats_for_draft
from .labels import step_title
from .offer_timer import OfferTimer
from .state import (
    AuthSession,
    ChooseDailyUsage,
    ChooseDuration,
    ChooseProduct,
    ChooseUnitCost,
    CreateCredentials,
    DurationBucket,
    EnterIdentity,
    Offer,
    OnboardingDraft,
    ProductType,
    Provisioned,
    Step,
    next_step_type,
    previous_step_type,
)

logger = logging.getLogger(__name__)

DEFAULT_ADVANCE_DELAY = 0.3

EMAIL_TAKEN = "This email is already registered. Please login instead."
EMAIL_CHECK_FAILED = "Unable to check email. Please try again."
REGISTRATION_FAILED = "Registration failed"


class FunnelEvents(Protocol):
    """What the controller reports to an optional funnel logger."""

    def step_enter(self, step: str, details: dict | None = None) -> None: ...

    def step_exit(self, step: str, reason: str | None = None) -> None: ...

    def gateway_call(
        self,
        gateway: str,
        duration_ms: int | None = None,
        outcome: str | None = None,
        error: str | None = None,
    ) -> None: ...

    def log(self, event_type: str, **kwargs) -> None: ...


class StepController:
    """
    One onboarding session.

    Collaborators are injected: the draft store, the two registry gateways,
    and optionally a timer factory, a sleep function and a funnel logger.
    """

    def __init__(
        self,
        store: DraftStore,
        email_gateway: EmailChecker,
        provisioning: AccountProvisioner,
        advance_delay: float = DEFAULT_ADVANCE_DELAY,
        timer_factory: Callable[[], OfferTimer] = OfferTimer,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        funnel: FunnelEvents | None = None,
    ):
        self.store = store
        self.email_gateway = email_gateway
        self.provisioning = provisioning
        self.advance_delay = advance_delay
        self._timer_factory = timer_factory
        self._sleep = sleep
        self._funnel = funnel

        self.draft = OnboardingDraft()
        self.state: Step | None = None
        self.error: str | None = None
        self.timer: OfferTimer | None = None
        self.account: AuthSession | None = None

        # Busy flags: the matching action ignores re-fires while True
        self.checking_email = False
        self.submitting = False
        self.closed = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Rehydrate the draft and enter step 1."""
        self.draft = self.store.load()
        logger.info("Onboarding session started")
        self._enter(ChooseProduct())

    async def aclose(self) -> None:
        """End the session: stop timers, close the current step."""
        if self.closed:
            return
        self.closed = True
        await self._stop_timer()
        if self.state is not None and self._funnel is not None:
            self._funnel.step_exit(self.state.name, reason="session_end")
        logger.info(f"Onboarding session closed on step {self.step_number}")

    async def __aenter__(self) -> "StepController":
        self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def step_number(self) -> int:
        return self.state.number if self.state is not None else 0

    @property
    def progress_fraction(self) -> float:
        if self.state is None:
            return 0.0
        if isinstance(self.state, Provisioned):
            return 1.0
        return self.state.progress_fraction

    @property
    def title(self) -> str:
        if self.state is None:
            return ""
        return step_title(self.state, self.draft.product_type)

    @property
    def stats(self) -> HabitStats:
        return stats_for_draft(self.draft)

    @property
    def is_provisioned(self) -> bool:
        return isinstance(self.state, Provisioned)

    @property
    def can_submit_identity(self) -> bool:
        if not isinstance(self.state, EnterIdentity) or self.checking_email:
            return False
        try:
            IdentityForm(**asdict(self.draft.identity))
        except PydanticValidationError:
            return False
        return True

    @property
    def credential_errors(self) -> list[str]:
        creds = self.draft.credentials
        return credential_hints(creds.password, creds.confirm_password)

    @property
    def can_finalize(self) -> bool:
        creds = self.draft.credentials
        return (
            isinstance(self.state, CreateCredentials)
            and not self.submitting
            and credentials_ready(creds.password, creds.confirm_password)
        )

    # =========================================================================
    # Steps 1-4: auto-advancing selections
    # =========================================================================

    async def select_product(self, product_type: ProductType | str) -> bool:
        """Record the product and move to step 2. Returns True if advanced."""
        self._require(ChooseProduct)
        try:
            self.draft.product_type = ProductType(product_type)
        except ValueError:
            raise ValidationError(f"Unknown product type: {product_type}")
        self._save()
        return await self._auto_advance(self.state)

    async def select_daily_usage(self, value: Any) -> bool:
        """Record units per day (unparseable counts as 0) and move to step 3."""
        self._require(ChooseDailyUsage)
        self.draft.daily_usage = coerce_number(value)
        self._save()
        return await self._auto_advance(self.state)

    async def select_unit_cost(self, value: Any) -> bool:
        """Record cost per unit and move to step 4."""
        self._require(ChooseUnitCost)
        self.draft.unit_cost = coerce_number(value)
        self._save()
        return await self._auto_advance(self.state)

    async def select_duration(self, bucket: DurationBucket | str) -> bool:
        """Record the duration bucket and move to step 5."""
        self._require(ChooseDuration)
        try:
            self.draft.duration_bucket = DurationBucket(bucket)
        except ValueError:
            raise ValidationError(f"Unknown duration: {bucket}")
        self._save()
        return await self._auto_advance(self.state)

    async def _auto_advance(self, issued: Step) -> bool:
        if self.advance_delay > 0:
            await self._sleep(self.advance_delay)
        if self.state is not issued or self.closed:
            logger.debug(f"Dropped auto-advance from {issued.name}, step changed")
            return False
        self._enter(next_step_type(issued)())
        return True

    # =========================================================================
    # Step 5: identity + email uniqueness gate
    # =========================================================================

    def update_identity(
        self,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        opt_in_messages: bool | None = None,
    ) -> None:
        """Apply whichever identity fields were given and save."""
        self._require(EnterIdentity)
        identity = self.draft.identity
        if first_name is not None:
            identity.first_name = first_name
        if last_name is not None:
            identity.last_name = last_name
        if email is not None:
            identity.email = email
        if phone is not None:
            identity.phone = phone
        if opt_in_messages is not None:
            identity.opt_in_messages = bool(opt_in_messages)
        self._save()

    async def submit_identity(self) -> bool:
        """
        Check the email with the registry and advance to the offer.

        Blocks with an inline error if the email is taken or the check fails.
        A result is dropped if the user left the step, or edited the email,
        while the check was in flight.
        """
        self._require(EnterIdentity)
        if self.checking_email:
            return False

        try:
            form = IdentityForm(**asdict(self.draft.identity))
        except PydanticValidationError as e:
            self.error = first_error_message(e)
            return False

        issued = self.state
        self.checking_email = True
        self.error = None
        try:
            status = await self._timed(
                "check_email", self.email_gateway.check_exists(form.email)
            )
        except OnboardingError as e:
            logger.warning(f"Email validation error: {e}")
            if self.state is issued:
                self.error = EMAIL_CHECK_FAILED
            return False
        finally:
            self.checking_email = False

        if self.state is not issued or self.closed:
            logger.debug("Dropped email check result, step changed")
            return False
        if self.draft.identity.email.strip() != form.email:
            logger.debug("Dropped email check result, email edited during check")
            return False

        if status is EmailStatus.EXISTS:
            self.error = EMAIL_TAKEN
            return False

        self._enter(Offer())
        return True

    # =========================================================================
    # Step 6: offer and flash sale
    # =========================================================================

    def accept_offer(self) -> None:
        self._require_offer(flash_sale=False)
        self._enter(CreateCredentials())

    def decline_offer(self) -> None:
        """Switch to the flash sale. Still step 6."""
        self._require_offer(flash_sale=False)
        self.draft.declined_initial_offer = True
        self._save()
        self._enter(Offer(flash_sale=True))

    def accept_discount(self) -> None:
        self._require_offer(flash_sale=True)
        self._log_event("flash_sale_choice", choice="accept_discount")
        self._enter(CreateCredentials())

    def decline_discount(self) -> None:
        """Decline the discount and pay full price. Same destination as accepting."""
        self._require_offer(flash_sale=True)
        self._log_event("flash_sale_choice", choice="full_price")
        self._enter(CreateCredentials())

    def _require_offer(self, flash_sale: bool) -> None:
        self._require(Offer)
        if self.state.flash_sale != flash_sale:
            variant = "flash sale" if self.state.flash_sale else "initial offer"
            raise StepError(f"Action not available on the {variant}")

    # =========================================================================
    # Step 7: credentials + provisioning
    # =========================================================================

    def update_credentials(
        self,
        password: str | None = None,
        confirm_password: str | None = None,
    ) -> None:
        self._require(CreateCredentials)
        if password is not None:
            self.draft.credentials.password = password
        if confirm_password is not None:
            self.draft.credentials.confirm_password = confirm_password
        self._save()

    async def finalize(self) -> bool:
        """
        Sign up and create the habit record. Returns True once provisioned.

        Re-fires while a submission is outstanding are ignored. If signup
        succeeded on an earlier attempt, only the habit record is retried.
        """
        self._require(CreateCredentials)
        if self.submitting:
            return False

        is_valid, errors = validate_for_finalize(self.draft)
        if not is_valid:
            self.error = errors[0]
            return False

        issued = self.state
        identity = self.draft.identity
        self.submitting = True
        self.error = None
        try:
            if self.account is None:
                self.account = await self._timed(
                    "sign_up",
                    self.provisioning.sign_up(
                        identity.email.strip(),
                        self.draft.credentials.password,
                        identity.display_name,
                    ),
                )
                logger.info("Account created, creating habit record")
                if self.state is not issued or self.closed:
                    return False

            request = build_habit_record_request(self.draft)
            record = await self._timed(
                "create_habit_record",
                self.provisioning.create_habit_record(self.account.token, request),
            )
        except OnboardingError as e:
            logger.warning(f"Provisioning failed (account held: {self.account is not None}): {e}")
            if self.state is issued:
                self.error = str(e) or REGISTRATION_FAILED
            return False
        finally:
            self.submitting = False

        if self.state is not issued or self.closed:
            return False

        self._enter(Provisioned(account=self.account, habit_record=record))
        return True

    # =========================================================================
    # Navigation
    # =========================================================================

    def back(self) -> None:
        """Go back one step. Only steps 2-5 allow it."""
        if self.state is None or not self.state.can_go_back:
            raise StepError(f"Cannot go back from step {self.step_number}")
        self._enter(previous_step_type(self.state)())

    # =========================================================================
    # Internals
    # =========================================================================

    def _require(self, step_type: type[Step]) -> None:
        if self.closed:
            raise StepError("Session is closed")
        if not isinstance(self.state, step_type):
            current = self.state.name if self.state is not None else "not started"
            raise StepError(f"{step_type.name} action called on step {current}")

    def _save(self) -> None:
        self.store.save(self.draft)

    def _enter(self, new_state: Step) -> None:
        old_state = self.state
        if old_state is not None and self._funnel is not None:
            self._funnel.step_exit(old_state.name)

        self.state = new_state
        self.error = None

        if isinstance(old_state, Offer) and not isinstance(new_state, Offer):
            self._cancel_timer()

        if isinstance(new_state, Offer):
            if self.timer is None:
                self.timer = self._timer_factory()
                self.timer.start()
            if new_state.flash_sale:
                self.timer.start_scarcity()

        # Re-entering step 1 always clears the product choice
        if isinstance(new_state, ChooseProduct):
            self.draft.product_type = None
            self._save()

        if self._funnel is not None:
            details = {"flash_sale": new_state.flash_sale} if isinstance(new_state, Offer) else None
            self._funnel.step_enter(new_state.name, details)
        logger.info(f"Onboarding step {new_state.number}: {new_state.name}")

    def _cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    async def _stop_timer(self) -> None:
        if self.timer is not None:
            timer, self.timer = self.timer, None
            await timer.aclose()

    async def _timed(self, gateway: str, call: Awaitable[Any]) -> Any:
        """Await a gateway call, reporting duration and outcome to the funnel log."""
        started = time.monotonic()
        try:
            result = await call
        except OnboardingError as e:
            self._gateway_event(gateway, started, error=f"{type(e).__name__}: {e}")
            raise
        self._gateway_event(gateway, started, outcome="ok")
        return result

    def _gateway_event(
        self,
        gateway: str,
        started: float,
        outcome: str | None = None,
        error: str | None = None,
    ) -> None:
        if self._funnel is None:
            return
        duration_ms = int((time.monotonic() - started) * 1000)
        self._funnel.gateway_call(gateway, duration_ms=duration_ms, outcome=outcome, error=error)

    def _log_event(self, event_type: str, **kwargs) -> None:
        if self._funnel is not None:
            self._funnel.log(event_type, **kwargs)
