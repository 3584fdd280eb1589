"""Pure fixed-point computation for the debt-proportional allocation."""

from decimal import Decimal
from typing import Optional

from .models import AllocationPlan, PriceReading

SOURCE_DECIMALS = 18
DEBT_DECIMALS = 6
DEBT_BUFFER_BPS = 100

_BPS = 10_000


def _validate_inputs(
    balance: int,
    debt: int,
    eur_usd: Optional[PriceReading],
    stable_usd: Optional[PriceReading],
) -> None:
    """Reject values that would make the split meaningless."""

    if balance < 0:
        raise ValueError("balance must be non-negative.")
    if debt < 0:
        raise ValueError("debt must be non-negative.")
    if debt == 0:
        return
    if eur_usd is None or stable_usd is None:
        raise ValueError("Oracle prices are required when debt is outstanding.")
    if eur_usd.answer <= 0 or stable_usd.answer <= 0:
        raise ValueError("Oracle prices must be positive when debt is outstanding.")


def debt_in_source_units(
    debt: int,
    eur_usd: PriceReading,
    stable_usd: PriceReading,
    source_decimals: int = SOURCE_DECIMALS,
    debt_decimals: int = DEBT_DECIMALS,
) -> int:
    """Convert a stablecoin debt into source-asset base units (floor)."""

    numerator = debt * stable_usd.answer * 10**source_decimals * 10**eur_usd.decimals
    denominator = eur_usd.answer * 10**debt_decimals * 10**stable_usd.decimals
    return numerator // denominator


def calculate_allocation(
    balance: int,
    debt: int,
    eur_usd: Optional[PriceReading] = None,
    stable_usd: Optional[PriceReading] = None,
    buffer_bps: int = DEBT_BUFFER_BPS,
    source_decimals: int = SOURCE_DECIMALS,
    debt_decimals: int = DEBT_DECIMALS,
) -> AllocationPlan:
    """Split ``balance`` between debt repayment and collateral.

    With no debt everything goes to the collateral leg. Otherwise the debt is
    converted to source units, padded by ``buffer_bps`` and clamped to the
    balance; the remainder goes to collateral. Integer arithmetic only.
    """

    _validate_inputs(balance, debt, eur_usd, stable_usd)

    if debt == 0:
        return AllocationPlan(amount_for_debt_leg=0, amount_for_collateral_leg=balance)

    needed = debt_in_source_units(debt, eur_usd, stable_usd, source_decimals, debt_decimals)
    with_buffer = needed * (_BPS + buffer_bps) // _BPS

    if with_buffer >= balance:
        return AllocationPlan(amount_for_debt_leg=balance, amount_for_collateral_leg=0)

    return AllocationPlan(
        amount_for_debt_leg=with_buffer,
        amount_for_collateral_leg=balance - with_buffer,
    )


def format_units(value: int, decimals: int) -> str:
    """Render base units as a plain decimal string without float rounding."""

    scaled = Decimal(value).scaleb(-decimals)
    text = format(scaled, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
