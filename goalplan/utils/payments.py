# goalplan/utils/payments.py
"""
Required contribution under a phased (piecewise-constant) return schedule.

Contributions land at the end of each month and compound monthly at the rate
of the phase in force. The monthly rate is the compounding equivalent of the
annual rate, ``(1 + annual) ** (1/12) - 1``, so the result does not drift with
horizon length the way ``annual / 12`` does.
"""
import functools
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple, Union

from goalplan.core.exceptions import InvalidGoalDefinition, InvalidHorizon
from goalplan.utils.phases import accumulation_months
from goalplan.utils.planner_types import (
    CENT,
    DRAWDOWN_RATE,
    PAYMENTS_PER_YEAR,
    ZERO,
    Number,
    PaymentFrequency,
    ReturnPhase,
    to_decimal,
)

ONE = Decimal(1)


@functools.lru_cache(maxsize=256)
def _periodic_rate(annual_rate: Decimal, periods_per_year: int) -> Decimal:
    if annual_rate == 0:
        return ZERO
    return (ONE + annual_rate) ** (ONE / Decimal(periods_per_year)) - ONE


def monthly_rate(annual_rate: Number) -> Decimal:
    return _periodic_rate(to_decimal(annual_rate), 12)


def monthly_rate_schedule(phases: Sequence[ReturnPhase], months: int) -> List[Decimal]:
    """Monthly rate in force for each of the first ``months`` months.

    Months past the end of the phase list keep the last phase's rate.
    """
    schedule: List[Decimal] = []
    for phase in phases:
        if len(schedule) >= months:
            break
        take = min(phase.length, months - len(schedule))
        schedule.extend([monthly_rate(phase.rate)] * take)
    if len(schedule) < months:
        last = monthly_rate(phases[-1].rate) if phases else ZERO
        schedule.extend([last] * (months - len(schedule)))
    return schedule


def growth_factor_sum(schedule: Sequence[Decimal]) -> Decimal:
    """Sum over contribution months of the growth each contribution sees until the last month."""
    total = ZERO
    factor = ONE
    # walk backwards: the final contribution does not grow
    for rate in reversed(schedule):
        total += factor
        factor *= ONE + rate
    return total


def calculate_required_pmt(
    target_amount: Number,
    return_phases: Sequence[ReturnPhase],
    horizon_months: int,
    payment_frequency: Optional[PaymentFrequency] = None,
    payment_period: Optional[int] = None,
) -> Decimal:
    """
    Level monthly contribution that grows to ``target_amount`` by the end of
    the accumulation phases.

    The drawdown phase of a goal with a payment period is a spend-down and is
    never part of the contribution window.
    """
    target = to_decimal(target_amount)
    if target < 0:
        raise InvalidGoalDefinition(f"Target amount must not be negative, got {target}")
    if payment_frequency is not None:
        try:
            PaymentFrequency(payment_frequency)
        except ValueError:
            raise InvalidGoalDefinition(f"Unknown payment frequency: {payment_frequency}")
    if horizon_months <= 0:
        raise InvalidHorizon(horizon_months)
    if accumulation_months(tuple(return_phases), payment_period) == 0:
        raise InvalidHorizon(0)
    if target == 0:
        return ZERO

    schedule = monthly_rate_schedule(return_phases, horizon_months)
    return target / growth_factor_sum(schedule)


def project_balances(
    contributions: Union[Number, Sequence[Number]],
    return_phases: Sequence[ReturnPhase],
    months: Optional[int] = None,
) -> Tuple[Decimal, ...]:
    """Running balance month by month for a level or per-month contribution stream."""
    if isinstance(contributions, (list, tuple)):
        stream = [to_decimal(c) for c in contributions]
        months = len(stream) if months is None else months
        stream += [ZERO] * (months - len(stream))
    else:
        if months is None:
            raise ValueError("months is required for a level contribution")
        stream = [to_decimal(contributions)] * months

    balances = []
    balance = ZERO
    for rate, contribution in zip(monthly_rate_schedule(return_phases, months), stream):
        balance = balance * (ONE + rate) + contribution
        balances.append(balance)
    return tuple(balances)


def calculate_disbursement(
    amount: Number,
    payment_period: Optional[int],
    payment_frequency: PaymentFrequency = PaymentFrequency.once,
    annual_rate: Number = DRAWDOWN_RATE,
) -> Decimal:
    """
    Installment a funded target supports when paid out over the drawdown.

    ``Once`` (or no payment period) disburses the whole amount at the target
    date; otherwise the balance keeps compounding at the drawdown rate while
    it is paid out in level installments.
    """
    total = to_decimal(amount)
    frequency = PaymentFrequency(payment_frequency)
    if frequency == PaymentFrequency.once or not payment_period:
        return total.quantize(CENT, rounding=ROUND_HALF_UP)

    periods_per_year = PAYMENTS_PER_YEAR[frequency]
    installments = payment_period * periods_per_year
    rate = _periodic_rate(to_decimal(annual_rate), periods_per_year)
    if rate == 0:
        installment = total / installments
    else:
        installment = total * rate / (ONE - (ONE + rate) ** -installments)
    return installment.quantize(CENT, rounding=ROUND_HALF_UP)
