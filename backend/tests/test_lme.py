from datetime import date, datetime

import pytest

from ibrac.services.lme import (
    LMEPoint, calculate_week_price, convert_usd_t_to_brl_kg, get_lme_for_date,
    parse_date, simulate_processing,
)

HISTORY = [
    LMEPoint("2024-03-10", 52.0),
    LMEPoint(date(2024, 3, 5), 50.0),
    LMEPoint("2024-03-01", 49.0),
]


def test_lookup_exact_date():
    assert get_lme_for_date(HISTORY, "2024-03-05") == 50.0
    assert get_lme_for_date(HISTORY, date(2024, 3, 10)) == 52.0


def test_lookup_carries_last_observation_forward():
    assert get_lme_for_date(HISTORY, "2024-03-07") == 50.0
    assert get_lme_for_date(HISTORY, datetime(2024, 3, 20, 15, 0)) == 52.0


def test_lookup_before_first_quote_uses_most_recent():
    assert get_lme_for_date(HISTORY, "2024-02-01") == 52.0


def test_lookup_without_usable_target_uses_most_recent():
    assert get_lme_for_date(HISTORY, None) == 52.0
    assert get_lme_for_date(HISTORY, "não é data") == 52.0


def test_lookup_fallbacks():
    assert get_lme_for_date([], "2024-03-05", fallback=45.0) == 45.0
    assert get_lme_for_date(None, "2024-03-05") == 0.0
    assert get_lme_for_date([LMEPoint("2024-03-01", None)], "2024-03-05", fallback=1.5) == 1.5


def test_parse_date():
    assert parse_date("2024-03-05") == date(2024, 3, 5)
    assert parse_date(datetime(2024, 3, 5, 10)) == date(2024, 3, 5)
    assert parse_date("") is None
    assert parse_date(None) is None


def test_convert_usd_t_to_brl_kg():
    assert convert_usd_t_to_brl_kg(9000, 5.0) == pytest.approx(45.0)
    assert convert_usd_t_to_brl_kg(None, 5.0) is None
    assert convert_usd_t_to_brl_kg(9000, 0) is None


def test_week_price():
    week = calculate_week_price(9000, 5.0, icms_pct=12, pis_cofins_pct=9.25, taxa_financeira_pct=1)
    assert week.lme_base_brl_kg == pytest.approx(45.0)
    assert week.fator_total == pytest.approx(1.12 * 1.0925 * 1.01)
    assert week.lme_final_brl_kg == pytest.approx(45.0 * 1.12 * 1.0925 * 1.01)


def test_week_price_without_taxes():
    week = calculate_week_price(9000, 5.0)
    assert week.fator_total == 1
    assert week.lme_final_brl_kg == pytest.approx(45.0)


def test_simulation_worth_it():
    result = simulate_processing(
        preco_sucata_kg=40, peso_sucata_kg=1000, perda_processo_pct=5,
        custo_frete_coleta=500, custo_frete_laminacao=300, custo_mo_kg=2,
        preco_lme_kg=50,
    )
    assert result.peso_vergalhao_kg == pytest.approx(950)
    assert result.custo_sucata_total == 40000
    assert result.custo_frete_total == 800
    assert result.custo_mo_total == pytest.approx(1900)
    assert result.custo_total == pytest.approx(42700)
    assert result.custo_kg == pytest.approx(42700 / 950)
    assert result.diferenca_kg == pytest.approx(50 - 42700 / 950)
    assert result.economia_pct == pytest.approx((50 - 42700 / 950) / 50 * 100)
    assert result.vale_a_pena


def test_simulation_with_total_loss():
    result = simulate_processing(40, 1000, 100, 0, 0, 2, 50)
    assert result.peso_vergalhao_kg == 0
    assert result.custo_kg == 0
    assert not result.vale_a_pena
