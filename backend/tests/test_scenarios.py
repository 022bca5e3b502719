import pytest

from ibrac.services.kpis import SublotRef
from ibrac.services.scenarios import (
    ExitParams, Scenario, SCENARIO_CONFIG, calculate_exit, calculate_loss_profit_detail,
    detect_predominant_scenario, detect_scenario, detect_sublot_scenario, scenario_label,
)


@pytest.mark.parametrize(
    "generates_cost, owner_id, owner_is_company, expected",
    [
        (False, None, False, Scenario.INDUSTRIALIZACAO),
        (False, 5, False, Scenario.INDUSTRIALIZACAO),
        (False, 1, True, Scenario.INDUSTRIALIZACAO),
        (True, None, False, Scenario.PROPRIO),
        (True, 1, True, Scenario.PROPRIO),
        (True, 5, False, Scenario.OPERACAO_TERCEIRO),
        (None, None, False, Scenario.PROPRIO),
        (None, 5, False, Scenario.OPERACAO_TERCEIRO),
    ],
)
def test_detect_scenario(generates_cost, owner_id, owner_is_company, expected):
    assert detect_scenario(generates_cost, owner_id, owner_is_company) == expected


def test_detect_sublot_scenario_reads_attributes():
    assert detect_sublot_scenario(SublotRef(owner_id=3, generates_cost=True)) == Scenario.OPERACAO_TERCEIRO
    assert detect_sublot_scenario(object()) == Scenario.PROPRIO


def test_predominant_scenario_uses_first_sublot():
    sublots = [
        SublotRef(owner_id=3, generates_cost=False),
        SublotRef(owner_id=None, generates_cost=True),
    ]
    assert detect_predominant_scenario(sublots) == Scenario.INDUSTRIALIZACAO
    assert detect_predominant_scenario([]) is None


def test_scenario_labels():
    assert scenario_label(Scenario.PROPRIO) == "Material Próprio"
    assert set(SCENARIO_CONFIG) == set(Scenario)
    assert not SCENARIO_CONFIG[Scenario.INDUSTRIALIZACAO].gera_custo_material


def test_exit_own_material_keeps_gross_value():
    result = calculate_exit(ExitParams(
        scenario=Scenario.PROPRIO, weight_kg=500, unit_price=40, labor_cost=100,
    ))
    assert result.gross_value == 20000
    assert result.company_profit == 20000
    assert result.total_costs == 0
    assert result.owner_payout == 0


def test_exit_industrialization_charges_only_service():
    result = calculate_exit(ExitParams(
        scenario=Scenario.INDUSTRIALIZACAO, weight_kg=500, unit_price=40,
        labor_cost=300, loss_cost=120, additional_costs=80,
    ))
    assert result.gross_value == 500
    assert result.total_costs == 500
    assert result.company_profit == 500
    assert result.owner_payout == 0


def test_exit_third_party_operation():
    result = calculate_exit(ExitParams(
        scenario=Scenario.OPERACAO_TERCEIRO, weight_kg=1000, unit_price=10,
        labor_cost=300, additional_costs=200, commission_pct=10,
    ))
    assert result.gross_value == 10000
    assert result.total_costs == 500
    assert result.company_commission == pytest.approx(1000)
    assert result.owner_payout == pytest.approx(8500)
    assert result.owner_net_result == pytest.approx(8500)
    assert result.company_profit == pytest.approx(1000)


def test_loss_profit_detail_shows_losses():
    detail = calculate_loss_profit_detail(1000, 2, 3, 50)
    assert detail.diff_pct == pytest.approx(-1)
    assert detail.diff_kg == pytest.approx(-10)
    assert detail.value == pytest.approx(-500)
    assert not detail.has_profit

    detail = calculate_loss_profit_detail(1000, 5, 3, 50)
    assert detail.value == pytest.approx(1000)
    assert detail.has_profit
