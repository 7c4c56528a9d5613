"""
QuitFlow Onboarding System.

Seven-step funnel that collects a user's habit, shows what it costs them,
runs a time-boxed offer and provisions their account.

Steps:
1-4. Questionnaire - product, daily usage, unit cost, duration (auto-advance)
5.   Identity - gated on an email uniqueness check against the registry
6.   Offer - initial price, flash sale on decline, countdown + scarcity timers
7.   Credentials - password, then signup + habit record creation

Answers are persisted to a draft store on every change so a reload resumes
where the user left off.
"""

from .controller import StepController
from .draft_store import DraftStore, InMemoryDraftStore, JsonFileDraftStore
from .errors import (
    DuplicateEmailError,
    NetworkError,
    OnboardingError,
    PersistenceCorruption,
    StepError,
    ValidationError,
)
from .habits import HabitStats, compute_stats
from .state import DurationBucket, OnboardingDraft, ProductType

__all__ = [
    "StepController",
    "DraftStore",
    "InMemoryDraftStore",
    "JsonFileDraftStore",
    "OnboardingDraft",
    "ProductType",
    "DurationBucket",
    "HabitStats",
    "compute_stats",
    "OnboardingError",
    "ValidationError",
    "DuplicateEmailError",
    "NetworkError",
    "PersistenceCorruption",
    "StepError",
]
