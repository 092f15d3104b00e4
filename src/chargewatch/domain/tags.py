"""Customer tag escalation ladder: none -> chargeback_flag1 -> chargeback_risk.

Matching is plain substring containment on the raw tag string, the same way
Shopify admins read the comma-separated tag field.
"""

from .models import TagDecision

FLAG_TAG = "chargeback_flag1"
RISK_TAG = "chargeback_risk"

ACTION_ALREADY_AT_RISK = (
    f"Customer already has {RISK_TAG}, no need to add {FLAG_TAG}"
)
ACTION_ADDED_FLAG = f"Added tag: {FLAG_TAG}"
ACTION_ADDED_RISK = f"Added tag: {RISK_TAG} (customer already has {FLAG_TAG})"


def _append_tag(current_tags: str, tag: str) -> str:
    return f"{current_tags}, {tag}" if current_tags else tag


def apply_tag_ladder(current_tags: str) -> TagDecision:
    """Decide the next tag set for a customer who just filed a chargeback.

    Monotonic and idempotent at the top: once chargeback_risk is present,
    further chargebacks change nothing.
    """
    if RISK_TAG in current_tags:
        return TagDecision(
            should_update=False,
            new_tags=current_tags,
            action=ACTION_ALREADY_AT_RISK,
        )

    if FLAG_TAG not in current_tags:
        return TagDecision(
            should_update=True,
            new_tags=_append_tag(current_tags, FLAG_TAG),
            action=ACTION_ADDED_FLAG,
        )

    return TagDecision(
        should_update=True,
        new_tags=_append_tag(current_tags, RISK_TAG),
        action=ACTION_ADDED_RISK,
    )
