import unittest
from decimal import Decimal

from goalplan.core.exceptions import InvalidGoalDefinition
from goalplan.utils.phases import (
    accumulation_months,
    build_return_phases,
    recommended_profile,
)
from goalplan.utils.planner_types import (
    DEFAULT_RATES,
    DRAWDOWN_RATE,
    CustomRates,
    ReturnPhase,
    RiskProfile,
)


class TestReturnPhases(unittest.TestCase):
    def test_short_horizon_is_one_low_rate_phase(self):
        phases = build_return_phases(36, RiskProfile.growth)

        self.assertEqual(phases, (ReturnPhase(36, DEFAULT_RATES[RiskProfile.growth].low),))

    def test_medium_horizon_derisks_last_two_years(self):
        rates = DEFAULT_RATES[RiskProfile.balanced]
        phases = build_return_phases(60, RiskProfile.balanced)

        self.assertEqual(phases, (ReturnPhase(36, rates.high), ReturnPhase(24, rates.low)))

    def test_long_horizon_split_sums_to_horizon(self):
        phases = build_return_phases(121, RiskProfile.growth)

        self.assertEqual([p.length for p in phases], [87, 19, 15])
        self.assertEqual(sum(p.length for p in phases), 121)

    def test_every_horizon_keeps_full_length(self):
        for horizon in (1, 12, 37, 84, 85, 97, 240, 361):
            phases = build_return_phases(horizon, RiskProfile.balanced)
            self.assertEqual(sum(p.length for p in phases), horizon, horizon)
            self.assertTrue(all(p.length >= 0 for p in phases))

    def test_drawdown_phase_appended_after_accumulation(self):
        phases = build_return_phases(120, RiskProfile.growth, payment_period=4)

        self.assertEqual(phases[-1], ReturnPhase(48, DRAWDOWN_RATE))
        self.assertEqual(accumulation_months(phases, payment_period=4), 120)

    def test_custom_rates_override_profile(self):
        custom = CustomRates.of("0.10", "0.05", "0.01")
        phases = build_return_phases(60, RiskProfile.conservative, custom_rates=custom)

        self.assertEqual([p.rate for p in phases], [Decimal("0.10"), Decimal("0.01")])

    def test_same_inputs_give_same_phases(self):
        first = build_return_phases(150, RiskProfile.growth, payment_period=2)
        second = build_return_phases(150, RiskProfile.growth, payment_period=2)

        self.assertEqual(first, second)

    def test_rejects_empty_horizon_and_period(self):
        with self.assertRaises(InvalidGoalDefinition):
            build_return_phases(0, RiskProfile.balanced)
        with self.assertRaises(InvalidGoalDefinition):
            build_return_phases(24, RiskProfile.balanced, payment_period=0)

    def test_recommended_profile_by_horizon(self):
        self.assertEqual(recommended_profile(24), RiskProfile.conservative)
        self.assertEqual(recommended_profile(36), RiskProfile.conservative)
        self.assertEqual(recommended_profile(60), RiskProfile.balanced)
        self.assertEqual(recommended_profile(120), RiskProfile.growth)


if __name__ == "__main__":
    unittest.main()
