"""
Onboarding Errors.

Every failure the wizard can surface is one of these. Gateways translate
transport-level exceptions into this taxonomy so the controller never has to
know about httpx.
"""


class OnboardingError(Exception):
    """Base class for all onboarding failures."""


class ValidationError(OnboardingError):
    """Field-level problem the user can fix inline."""


class DuplicateEmailError(ValidationError):
    """The email already belongs to an account. User should log in instead."""


class NetworkError(OnboardingError):
    """Gateway could not be reached or returned a non-success status."""


class PersistenceCorruption(OnboardingError):
    """Persisted draft could not be parsed. Callers downgrade to a fresh draft."""


class StepError(OnboardingError):
    """An action was invoked in a step that does not accept it."""
