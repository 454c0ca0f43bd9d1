import numpy as np
import pytest

from src.finance.compounding import annualised_growth_rate, future_value, growth_schedule


@pytest.mark.parametrize("pv,rate,years", [
    (1000.0, 0.05, 10),
    (750000.0, 0.03, 5),
    (125000.0, 0.07, 5),
    (50.0, -0.2, 3),
    (0.0, 0.05, 10),
])
def test_future_value_matches_formula(pv, rate, years):
    assert future_value(pv, rate, years) == pytest.approx(pv * (1 + rate) ** years)


def test_zero_rate_keeps_value():
    assert future_value(12345.67, 0.0, 25) == pytest.approx(12345.67)


def test_zero_years_keeps_value():
    assert future_value(12345.67, 0.09, 0) == pytest.approx(12345.67)


def test_total_loss_rate():
    assert future_value(1000.0, -1.0, 4) == 0.0


def test_no_rounding_applied():
    # 100 * 1.035^3 = 110.871787...
    assert future_value(100.0, 0.035, 3) == pytest.approx(110.8717875, rel=1e-9)


def test_annualised_growth_rate_inverts_compounding():
    fv = future_value(1000.0, 0.06, 8)
    assert annualised_growth_rate(1000.0, fv, 8) == pytest.approx(0.06)


@pytest.mark.parametrize("current,years", [(0.0, 10), (-5.0, 10), (100.0, 0)])
def test_annualised_growth_rate_guards(current, years):
    assert annualised_growth_rate(current, 500.0, years) == 0.0


def test_growth_schedule_endpoints():
    schedule = growth_schedule(1000.0, 0.1, 3)
    assert isinstance(schedule, np.ndarray)
    assert len(schedule) == 4
    assert schedule[0] == pytest.approx(1000.0)
    assert schedule[-1] == pytest.approx(future_value(1000.0, 0.1, 3))
