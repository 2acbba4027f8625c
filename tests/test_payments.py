import unittest
from decimal import Decimal

from goalplan.core.exceptions import InvalidGoalDefinition, InvalidHorizon
from goalplan.utils.payments import (
    calculate_disbursement,
    calculate_required_pmt,
    growth_factor_sum,
    monthly_rate,
    monthly_rate_schedule,
    project_balances,
)
from goalplan.utils.phases import build_return_phases
from goalplan.utils.planner_types import PaymentFrequency, ReturnPhase, RiskProfile


class TestRequiredPayment(unittest.TestCase):
    def test_contributions_reach_target(self):
        for horizon, profile in ((24, RiskProfile.conservative), (60, RiskProfile.balanced), (150, RiskProfile.growth)):
            phases = build_return_phases(horizon, profile)
            pmt = calculate_required_pmt(25_000, phases, horizon)

            balances = project_balances(pmt, phases, horizon)
            self.assertLess(abs(balances[-1] - Decimal(25_000)), Decimal("0.01"), horizon)

    def test_zero_rate_is_straight_division(self):
        pmt = calculate_required_pmt(12_000, (ReturnPhase(12, Decimal(0)),), 12)

        self.assertEqual(pmt, Decimal(1000))

    def test_higher_rate_needs_smaller_contribution(self):
        low = calculate_required_pmt(50_000, (ReturnPhase(120, Decimal("0.02")),), 120)
        high = calculate_required_pmt(50_000, (ReturnPhase(120, Decimal("0.08")),), 120)

        self.assertLess(high, low)

    def test_zero_target_needs_nothing(self):
        self.assertEqual(calculate_required_pmt(0, build_return_phases(12, RiskProfile.balanced), 12), 0)

    def test_drawdown_months_do_not_take_contributions(self):
        with_drawdown = build_return_phases(36, RiskProfile.conservative, payment_period=4)
        without = build_return_phases(36, RiskProfile.conservative)

        self.assertEqual(
            calculate_required_pmt(40_000, with_drawdown, 36, PaymentFrequency.annual, 4),
            calculate_required_pmt(40_000, without, 36),
        )

    def test_invalid_inputs(self):
        phases = build_return_phases(12, RiskProfile.balanced)
        with self.assertRaises(InvalidHorizon):
            calculate_required_pmt(1000, phases, 0)
        with self.assertRaises(InvalidHorizon):
            calculate_required_pmt(1000, (ReturnPhase(0, Decimal("0.05")),), 12)
        with self.assertRaises(InvalidGoalDefinition):
            calculate_required_pmt(-1, phases, 12)
        with self.assertRaises(InvalidGoalDefinition):
            calculate_required_pmt(1000, phases, 12, payment_frequency="Weekly")


class TestRateSchedule(unittest.TestCase):
    def test_monthly_rate_compounds_to_annual(self):
        rate = monthly_rate(Decimal("0.12"))

        self.assertAlmostEqual(float((1 + rate) ** 12), 1.12, places=10)
        self.assertLess(rate, Decimal("0.01"))

    def test_schedule_extends_last_phase(self):
        phases = (ReturnPhase(2, Decimal("0.06")), ReturnPhase(1, Decimal(0)))
        schedule = monthly_rate_schedule(phases, 5)

        self.assertEqual(len(schedule), 5)
        self.assertEqual(schedule[0], schedule[1])
        self.assertEqual(schedule[2:], [Decimal(0)] * 3)

    def test_growth_factor_sum_without_growth(self):
        self.assertEqual(growth_factor_sum([Decimal(0)] * 7), 7)


class TestDisbursement(unittest.TestCase):
    def test_once_pays_whole_amount(self):
        self.assertEqual(calculate_disbursement(48_000, 4), Decimal("48000.00"))

    def test_zero_rate_splits_evenly(self):
        installment = calculate_disbursement(48_000, 4, PaymentFrequency.annual, annual_rate=0)

        self.assertEqual(installment, Decimal("12000.00"))

    def test_drawdown_growth_raises_installments(self):
        installment = calculate_disbursement(48_000, 4, PaymentFrequency.monthly)

        self.assertGreater(installment, Decimal(1000))
        self.assertLess(installment, Decimal(1100))


if __name__ == "__main__":
    unittest.main()
