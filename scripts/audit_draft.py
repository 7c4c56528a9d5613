"""Audit a saved onboarding draft: what would finalize send?"""
import sys
sys.path.insert(0, "src")

from onboarding.draft_store import JsonFileDraftStore
from onboarding.forms import build_habit_record_request, validate_for_finalize
from onboarding.habits import stats_for_draft
from quitflow.config import get_settings


def audit():
    settings = get_settings()
    store = JsonFileDraftStore(settings.draft_dir, key=settings.draft_key)

    print("=" * 60)
    print("ONBOARDING DRAFT AUDIT")
    print("=" * 60)

    # 1. Restored draft
    print(f"\n[1] DRAFT ({store.path})")
    if not store.path.exists():
        print("   - No draft found")
        return

    draft = store.load()
    identity = draft.identity
    print(f"   - Product: {draft.product_type.value if draft.product_type else None}")
    print(f"   - Daily usage: {draft.daily_usage}")
    print(f"   - Unit cost: {draft.unit_cost}")
    print(f"   - Duration: {draft.duration_bucket.value if draft.duration_bucket else None}")
    print(f"   - Name: {identity.display_name or '(empty)'}")
    print(f"   - Email: {identity.email or '(empty)'}")
    print(f"   - Password set: {bool(draft.credentials.password)}")
    print(f"   - Declined initial offer: {draft.declined_initial_offer}")

    # 2. Derived stats (offer step panel)
    print("\n[2] HABIT STATS")
    stats = stats_for_draft(draft)
    print(f"   - Yearly usage: {stats.yearly_usage} {stats.label.unit}")
    print(f"   - Yearly spending: ${stats.yearly_spending}")
    print(f"   - Lifetime spending: ${stats.total_spent_lifetime}")

    # 3. Habit record body (what finalize would POST)
    print("\n[3] HABIT RECORD PAYLOAD")
    if draft.product_type is None:
        print("   - Not buildable: no product selected")
    else:
        for key, value in build_habit_record_request(draft).to_wire().items():
            print(f"   - {key}: {value}")

    # 4. Validate
    print("\n[4] VALIDATION")
    issues = []

    is_valid, errors = validate_for_finalize(draft)
    if not is_valid:
        issues.extend(errors)

    if draft.credentials.password:
        issues.append("Password is stored in cleartext in the draft file")

    if issues:
        print("   ISSUES FOUND:")
        for issue in issues:
            print(f"   [!] {issue}")
    else:
        print("   [OK] All checks passed!")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    audit()
