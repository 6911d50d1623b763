import pytest

from inverapp.services.broker_commission import calculate_settlement


def test_settlement_with_commission_and_secondary():
    result = calculate_settlement(3000, 0.10, commission_pct=5, secondary_prices=[300])

    assert result.has_commission
    assert result.precio_minimo == pytest.approx(2700)
    assert result.comision_uf == pytest.approx(135)
    assert result.total_secundarios == pytest.approx(300)
    assert result.recuperacion_total_minima == pytest.approx(3135)
    assert result.descuento_disponible_con_comision_uf == pytest.approx(165)
    assert result.descuento_disponible_con_comision_pct == pytest.approx(5.5)
    assert result.bono_descuento_pct == pytest.approx(5.0, abs=0.011)
    assert result.descuento_disponible_bono_pie_pct == pytest.approx(5.5, abs=0.011)
    assert result.uf_disponible_dcto == pytest.approx(300)
    assert result.uf_disponible_broker == pytest.approx(165)
    assert result.dcto_disponible_con_comision_uf == pytest.approx(135)


def test_commission_over_secondaries_when_requested():
    result = calculate_settlement(3000, 0.10, commission_pct=5, secondary_prices=[300],
                                  include_secondaries=True)
    assert result.dcto_disponible_con_comision_uf == pytest.approx(150)


def test_broker_without_agreement():
    result = calculate_settlement(3000, 0.10)
    assert not result.has_commission
    assert result.comision_uf == 0.0
    assert result.recuperacion_total_minima == pytest.approx(2700)
    assert result.descuento_disponible_con_comision_pct == pytest.approx(10)


def test_fixed_discount_lowers_bono_discount():
    without = calculate_settlement(3000, 0.10, commission_pct=5)
    with_fixed = calculate_settlement(3000, 0.10, commission_pct=5, fixed_discount_pct=2)
    assert with_fixed.bono_descuento_pct < without.bono_descuento_pct


def test_zero_list_price_does_not_divide_by_zero():
    result = calculate_settlement(0, 0.10, commission_pct=5)
    assert result.descuento_disponible_con_comision_pct == 0.0
    assert result.bono_descuento_pct == 0.0
    assert result.descuento_disponible_bono_pie_pct == 0.0


def test_to_dict_rounds_amounts_but_keeps_discount_fraction():
    data = calculate_settlement(3333.333, 0.123456, commission_pct=4.5).to_dict()
    assert data['descuento_disponible'] == 0.123456
    assert data['precio_minimo'] == round(3333.333 * (1 - 0.123456), 2)
