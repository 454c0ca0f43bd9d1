import pytest

from src.finance.compounding import future_value
from src.finance.portfolio import (
    build_snapshot, project_assets, projection_timeline, summarise_portfolio, weighted_horizon,
)
from tests.helpers import make_asset


def test_empty_portfolio_is_all_zero():
    summary = summarise_portfolio([])
    assert summary.total_current_value == 0
    assert summary.total_future_value == 0
    assert summary.total_projected_growth == 0
    assert summary.overall_growth_rate == 0
    assert summary.asset_count == 0


def test_residence_and_rrsp_example():
    assets = [make_asset(750000, 0.03, 5, "residence"), make_asset(125000, 0.07, 5, "rrsp")]
    summary = summarise_portfolio(assets)

    assert summary.total_current_value == pytest.approx(875000)
    assert summary.total_future_value == pytest.approx(750000 * 1.03 ** 5 + 125000 * 1.07 ** 5)
    assert summary.total_future_value == pytest.approx(1044774.52, abs=0.01)
    assert summary.total_projected_growth == pytest.approx(169774.52, abs=0.01)


def test_zero_value_asset_guards_division():
    summary = summarise_portfolio([make_asset(0, 0.05, 10)])
    assert summary.total_current_value == 0
    assert summary.total_future_value == 0
    assert summary.total_projected_growth == 0
    assert summary.overall_growth_rate == 0


def test_each_asset_compounds_on_its_own_horizon():
    short = make_asset(100000, 0.05, 2)
    long = make_asset(100000, 0.05, 20)
    summary = summarise_portfolio([short, long])

    expected = future_value(100000, 0.05, 2) + future_value(100000, 0.05, 20)
    blended = future_value(200000, 0.05, 11)
    assert summary.total_future_value == pytest.approx(expected)
    assert summary.total_future_value != pytest.approx(blended)


def test_overall_rate_uses_weighted_horizon_by_default():
    assets = [make_asset(750000, 0.03, 5, "residence"), make_asset(125000, 0.07, 5, "rrsp")]
    summary = summarise_portfolio(assets)

    assert summary.normalisation_years == pytest.approx(5)
    expected = (summary.total_future_value / summary.total_current_value) ** (1 / 5) - 1
    assert summary.overall_growth_rate == pytest.approx(expected)


def test_single_asset_overall_rate_is_its_own_rate():
    summary = summarise_portfolio([make_asset(40000, 0.065, 12)])
    assert summary.overall_growth_rate == pytest.approx(0.065)


def test_fixed_normalisation_horizon():
    assets = [make_asset(750000, 0.03, 5, "residence"), make_asset(125000, 0.07, 5, "rrsp")]
    summary = summarise_portfolio(assets, normalisation_years=10)

    assert summary.normalisation_years == 10
    expected = (summary.total_future_value / summary.total_current_value) ** (1 / 10) - 1
    assert summary.overall_growth_rate == pytest.approx(expected)


def test_weighted_horizon():
    assets = [make_asset(300, 0.0, 10), make_asset(100, 0.0, 2)]
    assert weighted_horizon(assets) == pytest.approx((300 * 10 + 100 * 2) / 400)
    assert weighted_horizon([make_asset(0, 0.0, 4), make_asset(0, 0.0, 6)]) == pytest.approx(5)
    assert weighted_horizon([]) == 0.0


def test_project_assets():
    projections = project_assets([make_asset(1000, 0.1, 2, asset_id="x")])
    assert len(projections) == 1
    p = projections[0]
    assert p.asset_id == "x"
    assert p.future_value == pytest.approx(1210.0)
    assert p.projected_growth == pytest.approx(210.0)


def test_timeline_holds_assets_flat_after_their_horizon():
    assets = [make_asset(1000, 0.1, 2), make_asset(500, 0.0, 4)]
    timeline = projection_timeline(assets)

    assert list(timeline["year"]) == [0, 1, 2, 3, 4]
    assert timeline["projected_value"].iloc[0] == pytest.approx(1500)
    assert timeline["projected_value"].iloc[2] == pytest.approx(1710)
    assert timeline["projected_value"].iloc[4] == pytest.approx(1710)
    assert timeline["projected_value"].iloc[-1] == pytest.approx(summarise_portfolio(assets).total_future_value)
    assert (timeline["current_value"] == 1500).all()


def test_timeline_of_empty_portfolio():
    timeline = projection_timeline([])
    assert len(timeline) == 1
    assert timeline["projected_value"].iloc[0] == 0


def test_snapshot_serialises():
    snapshot = build_snapshot("c1", [make_asset(1000, 0.05, 1)])
    data = snapshot.to_dict()
    assert data["client_id"] == "c1"
    assert data["total_future_value"] == pytest.approx(1050)
    assert "generated_at" in data
