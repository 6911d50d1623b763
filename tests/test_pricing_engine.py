import pytest

from inverapp.services.pricing_engine import (
    MODE_DISCOUNT,
    MODE_BONO,
    MODE_MIX,
    normalize_mode,
    compute_adjusted_discount,
    resolve_mode,
    pct_from_uf,
    uf_from_pct,
    reservation_uf,
    build_payment_schedule,
)


@pytest.fixture
def adjusted():
    # 3000 UF list price, 10% nominal discount, 5% broker commission
    return compute_adjusted_discount(3000, 0.10, 0.05)


# --- Adjusted discount ---

def test_adjusted_discount_absorbs_commission(adjusted):
    assert adjusted.net_at_nominal_discount == pytest.approx(2700)
    assert adjusted.broker_commission_uf == pytest.approx(135)
    assert adjusted.price_after_commission == pytest.approx(2835)
    assert adjusted.adjusted_discount_rate == pytest.approx(0.055)
    assert adjusted.max_incentive_pool_uf == pytest.approx(165)


def test_no_commission_keeps_nominal_discount():
    result = compute_adjusted_discount(3000, 0.10, 0)
    assert result.adjusted_discount_rate == pytest.approx(0.10)


def test_commission_larger_than_discount_clamps_to_zero():
    result = compute_adjusted_discount(3000, 0.02, 0.05)
    assert result.available_discount_uf < 0
    assert result.adjusted_discount_rate == 0.0
    assert result.max_incentive_pool_uf == 0.0


def test_zero_list_price_gives_zero_rate():
    result = compute_adjusted_discount(0, 0.10, 0.05)
    assert result.adjusted_discount_rate == 0.0


def test_garbage_inputs_are_coerced():
    result = compute_adjusted_discount("abc", None, "x")
    assert result.list_price == 0.0
    assert result.adjusted_discount_rate == 0.0


# --- Mode resolution ---

@pytest.mark.parametrize("raw, expected", [
    ('descuento', MODE_DISCOUNT),
    ('discount', MODE_DISCOUNT),
    ('BONO', MODE_BONO),
    ('incentive', MODE_BONO),
    ('mix', MODE_MIX),
    ('something-else', MODE_DISCOUNT),
    (None, MODE_DISCOUNT),
])
def test_normalize_mode(raw, expected):
    assert normalize_mode(raw) == expected


def test_discount_mode_uses_whole_pool(adjusted):
    result = resolve_mode('descuento', adjusted, secondary_total=300)
    assert result.discount_uf == pytest.approx(165)
    assert result.discount_pct == pytest.approx(5.5)
    assert result.incentive_uf == 0.0
    assert result.net_unit_price == pytest.approx(2835)
    assert result.total_deed_price == pytest.approx(3135)


def test_bono_mode_keeps_list_price(adjusted):
    result = resolve_mode('bono', adjusted)
    assert result.discount_uf == 0.0
    assert result.incentive_uf == pytest.approx(165)
    assert result.total_deed_price == pytest.approx(3000)
    assert result.incentive_pct == pytest.approx(5.5)


def test_mix_mode_incentive_is_percentage_of_final_total(adjusted):
    result = resolve_mode('mix', adjusted, incentive_pct=4)
    # T = (3000 - 165) / 0.96
    assert result.total_deed_price == pytest.approx(2953.125)
    assert result.incentive_uf == pytest.approx(118.125)
    assert result.discount_uf == pytest.approx(46.875)
    assert result.discount_pct == pytest.approx(1.5625)
    assert result.incentive_pct == pytest.approx(4)
    assert result.discount_uf + result.incentive_uf == pytest.approx(adjusted.max_incentive_pool_uf)


def test_mix_mode_with_secondaries(adjusted):
    result = resolve_mode('mix', adjusted, secondary_total=300, incentive_pct=4)
    assert result.incentive_uf == pytest.approx(0.04 * result.total_deed_price)
    assert result.total_deed_price == pytest.approx(3000 - result.discount_uf + 300)


def test_mix_mode_incentive_capped_by_pool(adjusted):
    result = resolve_mode('mix', adjusted, incentive_pct=10)
    assert result.incentive_uf == pytest.approx(165)
    assert result.discount_uf == pytest.approx(0)
    assert result.total_deed_price == pytest.approx(3000)


def test_mix_mode_policy_cap(adjusted):
    capped = resolve_mode('mix', adjusted, incentive_pct=4, max_incentive_pct=2)
    uncapped = resolve_mode('mix', adjusted, incentive_pct=2)
    assert capped.incentive_uf == pytest.approx(uncapped.incentive_uf)


def test_mix_mode_zero_incentive_matches_discount_mode(adjusted):
    mix = resolve_mode('mix', adjusted, incentive_pct=0)
    discount = resolve_mode('descuento', adjusted)
    assert mix.total_deed_price == pytest.approx(discount.total_deed_price)
    assert mix.incentive_uf == 0.0


def test_unknown_mode_behaves_like_discount(adjusted):
    assert resolve_mode('weird', adjusted).mode == MODE_DISCOUNT


# --- Percent / UF sync ---

def test_pct_uf_conversions():
    assert uf_from_pct(10, 2835) == 283.5
    assert pct_from_uf(500, 2835) == 17.64
    assert pct_from_uf(100, 0) == 0.0


def test_reservation_uf():
    assert reservation_uf(100000, 40000) == pytest.approx(2.5)
    assert reservation_uf(100000, 0) == 0.0


# --- Payment schedule ---

def test_schedule_balances_on_mortgage_credit():
    schedule = build_payment_schedule(2835, 37000, 185000, promise_uf=100, down_payment_uf=200)
    assert schedule.line('reserva').uf == pytest.approx(5)
    assert schedule.mortgage_credit_uf == pytest.approx(2530)
    assert schedule.total_uf == pytest.approx(2835)
    assert not schedule.is_over_allocated
    assert [line.key for line in schedule.lines] == [
        'reserva', 'promesa', 'pie', 'credito_hipotecario', 'bono_pie']


def test_schedule_includes_bono_pie():
    schedule = build_payment_schedule(3000, 37000, 185000, incentive_uf=165)
    assert schedule.line('bono_pie').uf == pytest.approx(165)
    assert schedule.mortgage_credit_uf == pytest.approx(3000 - 5 - 165)
    assert schedule.to_dict()['total_pct'] == 100.0


def test_schedule_flags_over_allocation():
    schedule = build_payment_schedule(2835, 37000, 185000, down_payment_uf=3000)
    assert schedule.mortgage_credit_uf < 0
    assert schedule.is_over_allocated
    assert schedule.to_dict()['over_allocated'] is True


def test_schedule_without_uf_value_has_no_reservation():
    schedule = build_payment_schedule(2835, 0, 185000)
    assert schedule.line('reserva').uf == 0.0
    assert schedule.line('credito_hipotecario').pesos == 0.0


def test_schedule_line_pesos():
    schedule = build_payment_schedule(2835, 37000, 185000, promise_uf=100)
    line = schedule.line('promesa').to_dict()
    assert line['pesos'] == 3700000
    assert line['pct'] == 3.53


# --- Properties over ranges of inputs ---

LIST_PRICES = [0, 1, 850.5, 3000, 12000]
BASE_DISCOUNTS = [0, 0.01, 0.10, 0.35, 1]
COMMISSIONS = [0, 0.02, 0.05, 0.2, 1]


@pytest.mark.parametrize("list_price", LIST_PRICES)
@pytest.mark.parametrize("base_discount", BASE_DISCOUNTS)
@pytest.mark.parametrize("commission", COMMISSIONS)
def test_adjusted_rate_never_exceeds_base_rate(list_price, base_discount, commission):
    result = compute_adjusted_discount(list_price, base_discount, commission)
    assert 0.0 <= result.adjusted_discount_rate <= base_discount + 1e-12
    assert result.max_incentive_pool_uf >= 0.0


@pytest.mark.parametrize("incentive_pct", [0, 0.5, 1, 3.9, 5.5, 10, 50, 99.9, 100, 150])
@pytest.mark.parametrize("secondary_total", [0, 300, 1250.75])
@pytest.mark.parametrize("commission", [0, 0.05, 0.08])
def test_mix_mode_splits_the_whole_pool(incentive_pct, secondary_total, commission):
    adjusted = compute_adjusted_discount(3000, 0.10, commission)
    pool = adjusted.max_incentive_pool_uf
    result = resolve_mode('mix', adjusted, secondary_total=secondary_total, incentive_pct=incentive_pct)

    assert result.discount_uf + result.incentive_uf == pytest.approx(pool)
    assert 0.0 <= result.incentive_uf <= pool + 1e-9
    assert result.total_deed_price == pytest.approx(3000 - result.discount_uf + secondary_total)


def test_mix_mode_leaving_fifty_uf_of_pool_as_discount(adjusted):
    # 165 UF pool, 115 UF as bono: the deed total is 2950 and 50 UF stay as discount.
    result = resolve_mode('mix', adjusted, incentive_pct=115 / 2950 * 100)
    assert result.incentive_uf == pytest.approx(115)
    assert result.discount_uf == pytest.approx(50)
    assert result.total_deed_price == pytest.approx(2950)
    assert round(result.discount_pct, 2) == 1.67


@pytest.mark.parametrize("pct", [0.01, 5, 10, 17.64, 33.33, 50, 99.99, 100])
@pytest.mark.parametrize("total", [100, 850.5, 2835, 12000.75])
def test_pct_uf_pct_round_trip(pct, total):
    assert abs(pct_from_uf(uf_from_pct(pct, total), total) - pct) <= 0.01 + 1e-9


@pytest.mark.parametrize("promise_uf", [0, 100, 283.5])
@pytest.mark.parametrize("down_payment_uf", [0, 200, 3000])
@pytest.mark.parametrize("incentive_uf", [0, 118.125, 165])
@pytest.mark.parametrize("uf_value", [0, 37000])
def test_payment_form_always_adds_up_to_deed_total(promise_uf, down_payment_uf, incentive_uf, uf_value):
    schedule = build_payment_schedule(2835, uf_value, 185000, promise_uf=promise_uf,
                                      down_payment_uf=down_payment_uf, incentive_uf=incentive_uf)
    assert schedule.total_uf == pytest.approx(2835)
    assert sum(line.uf for line in schedule.lines) == pytest.approx(2835)
