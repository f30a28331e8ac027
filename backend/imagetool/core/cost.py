from __future__ import annotations

import threading
from decimal import Decimal, ROUND_HALF_UP

from imagetool.core.config import settings
from imagetool.core.logging import log

_cost_lock = threading.Lock()
_current_run_cost = Decimal("0")

# dall-e-3 list prices in USD per image, keyed by (quality, size)
DALLE3_PRICES = {
    ("standard", "1024x1024"): Decimal("0.040"),
    ("standard", "1792x1024"): Decimal("0.080"),
    ("standard", "1024x1792"): Decimal("0.080"),
    ("hd", "1024x1024"): Decimal("0.080"),
    ("hd", "1792x1024"): Decimal("0.120"),
    ("hd", "1024x1792"): Decimal("0.120"),
}


def estimate_image_cost(quality: str, size: str) -> Decimal:
    """Returns the per-image price for a dall-e-3 request.

    Unknown combinations are priced at the most expensive tier.
    """
    return DALLE3_PRICES.get((quality, size), max(DALLE3_PRICES.values()))


def reset_cycle() -> None:
    """Resets the accumulated spend to zero."""
    global _current_run_cost
    with _cost_lock:
        _current_run_cost = Decimal("0")
        log.info("cost_reset")


def check_budget(amount: Decimal, service: str) -> None:
    """Raises if a single call would cost more than MAX_COST_PER_RUN.

    IMPORTANT: Check budget BEFORE making the API call, not after. The cap is
    per tool call; the running total is only reported, never enforced.

    Args:
        amount: Estimated cost of this call in USD
        service: Name of the service (for logging)

    Raises:
        RuntimeError: If the call alone exceeds MAX_COST_PER_RUN
    """
    budget = Decimal(str(settings.max_cost_per_run))
    if amount > budget:
        log.warning(f"cost_over_budget service={service} amount={amount} budget={budget}")
        raise RuntimeError(
            f"Budget exceeded: ${amount} > ${budget} (single {service} call)"
        )


def add_cost(amount: Decimal, service: str) -> None:
    """Records spend for a call that completed.

    Args:
        amount: Cost to add in USD (Decimal for precision)
        service: Name of the service (for logging)
    """
    global _current_run_cost
    with _cost_lock:
        _current_run_cost = (_current_run_cost + amount).quantize(
            Decimal("0.0001"), rounding=ROUND_HALF_UP
        )
        log.info(f"cost_add service={service} amount={amount} total={_current_run_cost}")


def get_current_cost() -> Decimal:
    """Returns the spend recorded since startup (or the last reset) as Decimal."""
    with _cost_lock:
        return _current_run_cost
