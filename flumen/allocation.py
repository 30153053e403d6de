"""Monthly surplus/deficit distribution across investment accounts."""

from __future__ import annotations

import logging
from typing import Mapping

from .schema import Investment, InvestmentMonthData

logger = logging.getLogger(__name__)


class AllocationError(ValueError):
    """Raised in strict mode when cash cannot be fully allocated or funded."""


def _previous_balance(investment: Investment, previous: Mapping[str, InvestmentMonthData | float] | None) -> float:
    if previous is None or investment.id not in previous:
        return investment.initial_balance
    entry = previous[investment.id]
    if isinstance(entry, InvestmentMonthData):
        return entry.final_balance
    return float(entry)


def _withdrawal_order(investments: list[Investment]) -> list[Investment]:
    # stable sort: equal priorities are drawn in configuration order
    return sorted(investments, key=lambda inv: inv.withdrawal_priority)


def _withdraw_from_investments(
    *,
    shortfall: float,
    ordered: list[Investment],
    result: dict[str, InvestmentMonthData],
) -> float:
    """Draw down accounts in order. Returns the shortfall left unfunded."""
    for investment in ordered:
        if shortfall <= 0:
            break
        amount = min(result[investment.id].previous_balance, shortfall)
        if amount <= 0:
            continue
        result[investment.id].deposit = -amount
        shortfall -= amount
        logger.debug("withdrew %.2f from %s", amount, investment.id)
    return shortfall


def _fill_minimum_targets(
    *,
    available: float,
    investments: list[Investment],
    result: dict[str, InvestmentMonthData],
) -> float:
    """Top up accounts below their minimum target. Returns the cash left over."""
    for investment in investments:
        if available <= 0:
            break
        if investment.min_value_target is None:
            continue
        balance = result[investment.id].previous_balance
        if balance >= investment.min_value_target:
            continue
        amount = min(available, investment.min_value_target - balance)
        result[investment.id].deposit = amount
        available -= amount
        logger.debug("deposited %.2f into %s towards minimum target", amount, investment.id)
    return available


def _distribute_by_allocation(
    *,
    available: float,
    investments: list[Investment],
    result: dict[str, InvestmentMonthData],
) -> None:
    for investment in investments:
        result[investment.id].deposit += available * (investment.allocation_percent / 100.0)


def unallocated_cash(available_cash: float, allocations: Mapping[str, InvestmentMonthData]) -> float:
    """Cash the allocation did not account for.

    Positive for surplus left unassigned or deficit left unfunded, negative when
    allocation percents over-commit the surplus.
    """
    moved = sum(entry.deposit for entry in allocations.values())
    if available_cash < 0:
        return moved - available_cash
    return available_cash - moved


def allocate(
    available_cash: float,
    investments: list[Investment],
    previous_balances: Mapping[str, InvestmentMonthData | float] | None = None,
    *,
    strict: bool = False,
    tolerance: float = 0.01,
) -> dict[str, InvestmentMonthData]:
    """Distribute one month's net cash across investment accounts.

    A deficit is withdrawn in ascending ``withdrawal_priority``, each account
    giving at most its balance. A surplus first tops up accounts below their
    ``min_value_target`` (configuration order), then the remainder is split by
    ``allocation_percent`` over every account. Yield is always 0 here.

    Percentages are applied as given and an unfundable deficit is left
    unwithdrawn; with ``strict`` either case raises ``AllocationError``.
    """
    result: dict[str, InvestmentMonthData] = {}
    for investment in investments:
        balance = _previous_balance(investment, previous_balances)
        result[investment.id] = InvestmentMonthData(previous_balance=balance, final_balance=balance)

    if available_cash < 0:
        remaining = _withdraw_from_investments(
            shortfall=abs(available_cash),
            ordered=_withdrawal_order(investments),
            result=result,
        )
        if remaining > 0:
            if strict and remaining > tolerance:
                raise AllocationError(f"deficit of {remaining:.2f} cannot be funded from investment balances")
            logger.warning("unfunded deficit of %.2f left after drawing all investments", remaining)
    elif available_cash > 0:
        remaining = _fill_minimum_targets(available=available_cash, investments=investments, result=result)
        if remaining > 0:
            _distribute_by_allocation(available=remaining, investments=investments, result=result)
            if strict:
                leftover = unallocated_cash(available_cash, result)
                if abs(leftover) > tolerance:
                    percent_sum = sum(inv.allocation_percent for inv in investments)
                    raise AllocationError(
                        f"allocation percents sum to {percent_sum:g}%; {leftover:.2f} of surplus not conserved"
                    )

    for entry in result.values():
        entry.yield_ = 0.0
        entry.final_balance = entry.previous_balance + entry.deposit
    return result
