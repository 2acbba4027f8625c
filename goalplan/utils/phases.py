# goalplan/utils/phases.py
from typing import Optional, Tuple

from goalplan.core.exceptions import InvalidGoalDefinition
from goalplan.utils.planner_types import (
    DEFAULT_RATES,
    DRAWDOWN_RATE,
    CustomRates,
    ReturnPhase,
    RiskProfile,
)

# Final months held at the low rate for 3-7 year horizons
DERISK_MONTHS = 24
# 72/16/12 split for horizons beyond seven years, in percent
HIGH_SHARE = 72
MID_SHARE = 16


def recommended_profile(horizon_months: int) -> RiskProfile:
    years = horizon_months / 12
    if years <= 3:
        return RiskProfile.conservative
    if years <= 7:
        return RiskProfile.balanced
    return RiskProfile.growth


def resolve_rates(profile: RiskProfile, custom_rates: Optional[CustomRates] = None) -> CustomRates:
    if custom_rates is not None:
        return custom_rates
    return DEFAULT_RATES[RiskProfile(profile)]


def build_return_phases(
    horizon_months: int,
    profile: RiskProfile,
    payment_period: Optional[int] = None,
    custom_rates: Optional[CustomRates] = None,
) -> Tuple[ReturnPhase, ...]:
    """
    Split a goal's horizon into return phases that de-risk toward the target date.

    - up to 3 years: the whole horizon at the low rate
    - up to 7 years: high rate, then the last 24 months at the low rate
    - beyond 7 years: 72% high, 16% mid, remainder low

    When the goal pays out over ``payment_period`` years after the target date,
    a drawdown phase at a fixed 2% is appended after the accumulation phases.
    """
    if horizon_months < 1:
        raise InvalidGoalDefinition(f"Horizon must be at least one month, got {horizon_months}")
    if payment_period is not None and payment_period < 1:
        raise InvalidGoalDefinition(f"Payment period must be at least one year, got {payment_period}")

    rates = resolve_rates(profile, custom_rates)
    years = horizon_months / 12

    if years <= 3:
        phases = [ReturnPhase(horizon_months, rates.low)]
    elif years <= 7:
        phases = [
            ReturnPhase(horizon_months - DERISK_MONTHS, rates.high),
            ReturnPhase(DERISK_MONTHS, rates.low),
        ]
    else:
        high = horizon_months * HIGH_SHARE // 100
        mid = horizon_months * MID_SHARE // 100
        phases = [
            ReturnPhase(high, rates.high),
            ReturnPhase(mid, rates.mid),
            # remainder keeps the lengths summing to the horizon
            ReturnPhase(horizon_months - high - mid, rates.low),
        ]

    if payment_period:
        phases.append(ReturnPhase(payment_period * 12, DRAWDOWN_RATE))

    return tuple(phases)


def accumulation_months(phases: Tuple[ReturnPhase, ...], payment_period: Optional[int] = None) -> int:
    total = sum(phase.length for phase in phases)
    if payment_period:
        total -= payment_period * 12
    return max(total, 0)
