import pytest

from src.finance.allocation import classify_allocation, risk_level_for, weighted_risk_score
from tests.helpers import make_asset


def test_percentages_sum_to_100():
    assets = [
        make_asset(750000, 0.03, 5, "residence"),
        make_asset(125000, 0.07, 5, "rrsp"),
        make_asset(45000, 0.06, 5, "tfsa"),
        make_asset(25000, 0.025, 5, "savings"),
    ]
    slices = classify_allocation(assets)
    assert sum(s.percentage for s in slices) == pytest.approx(100.0)
    assert sum(s.value for s in slices) == pytest.approx(945000)


def test_zero_total_gives_zero_percentages():
    slices = classify_allocation([make_asset(0, 0.05, 10, "tfsa"), make_asset(0, 0.02, 3, "savings")])
    assert len(slices) == 2
    assert sum(s.percentage for s in slices) == 0


def test_groups_by_category_largest_first():
    assets = [
        make_asset(100, 0.0, 1, "savings", asset_id="s1"),
        make_asset(400, 0.0, 1, "residence", asset_id="r1"),
        make_asset(300, 0.0, 1, "residence", asset_id="r2"),
        make_asset(200, 0.0, 1, "savings", asset_id="s2"),
    ]
    slices = classify_allocation(assets)
    assert [s.category for s in slices] == ["residence", "savings"]
    residence = slices[0]
    assert residence.value == pytest.approx(700)
    assert residence.asset_count == 2
    assert residence.percentage == pytest.approx(70.0)


def test_static_risk_tiers():
    assert risk_level_for("residence") == "low"
    assert risk_level_for("savings") == "low"
    assert risk_level_for("rrsp") == "medium"
    assert risk_level_for("tfsa") == "medium"
    assert risk_level_for("investment") == "high"


def test_unknown_category_defaults_to_medium():
    slices = classify_allocation([make_asset(1000, 0.04, 5, "crypto")])
    assert slices[0].risk_level == "medium"
    assert slices[0].percentage == pytest.approx(100.0)


def test_empty_assets():
    assert classify_allocation([]) == []
    assert weighted_risk_score([]) == 0.0


def test_weighted_risk_score():
    slices = classify_allocation([
        make_asset(500, 0.0, 1, "residence"),
        make_asset(500, 0.0, 1, "investment"),
    ])
    assert weighted_risk_score(slices) == pytest.approx(2.0)

    all_high = classify_allocation([make_asset(10, 0.0, 1, "investment")])
    assert weighted_risk_score(all_high) == pytest.approx(3.0)
