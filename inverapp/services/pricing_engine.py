# inverapp/services/pricing_engine.py
# Quotation pricing engine: discount / bono / mix pricing and payment schedule.
# This module is a pure logic library with NO Flask or database imports.

from dataclasses import dataclass, asdict

from inverapp.utils.math_utils import to_number, safe_div, round2, clamp

MODE_DISCOUNT = 'descuento'
MODE_BONO = 'bono'
MODE_MIX = 'mix'
QUOTATION_MODES = (MODE_DISCOUNT, MODE_BONO, MODE_MIX)

# English aliases accepted from API callers.
_MODE_ALIASES = {
    'discount': MODE_DISCOUNT,
    'descuento': MODE_DISCOUNT,
    'bono': MODE_BONO,
    'incentive': MODE_BONO,
    'mix': MODE_MIX,
}


def normalize_mode(mode):
    """Maps any accepted spelling to a canonical mode. Unknown values fall back to 'descuento'."""
    return _MODE_ALIASES.get(str(mode or '').strip().lower(), MODE_DISCOUNT)


# --- 1. AdjustedDiscountCalculator ---

@dataclass(frozen=True)
class AdjustedDiscount:
    list_price: float
    net_at_nominal_discount: float
    broker_commission_uf: float
    price_after_commission: float
    available_discount_uf: float
    adjusted_discount_rate: float
    max_incentive_pool_uf: float

    def to_dict(self):
        return asdict(self)


def compute_adjusted_discount(list_price, base_discount_rate, commission_rate=0.0):
    """
    Reduces a unit's nominal discount by the broker's commission, so the net
    price the seller receives at the nominal discount is preserved.

        net      = list * (1 - base)
        comision = net * commission
        adjusted = (list - (net + comision)) / list, clamped to [0, 1]

    The adjusted rate is the ceiling for the pure discount and for the shared
    discount + bono pool in mix mode.
    """
    list_price = max(0.0, to_number(list_price))
    base_discount_rate = clamp(base_discount_rate, 0.0, 1.0)
    commission_rate = clamp(commission_rate, 0.0, 1.0)

    net_at_nominal = list_price * (1 - base_discount_rate)
    commission_uf = net_at_nominal * commission_rate
    price_after_commission = net_at_nominal + commission_uf
    available_discount_uf = list_price - price_after_commission

    adjusted_rate = clamp(safe_div(available_discount_uf, list_price), 0.0, 1.0)

    return AdjustedDiscount(
        list_price=list_price,
        net_at_nominal_discount=net_at_nominal,
        broker_commission_uf=commission_uf,
        price_after_commission=price_after_commission,
        available_discount_uf=available_discount_uf,
        adjusted_discount_rate=adjusted_rate,
        max_incentive_pool_uf=list_price * adjusted_rate,
    )


# --- 2. ModeResolver ---

@dataclass(frozen=True)
class ModeResolution:
    mode: str
    discount_pct: float
    discount_uf: float
    incentive_uf: float
    incentive_pct: float      # Percent of total deed price
    net_unit_price: float
    secondary_total: float
    total_deed_price: float

    def to_dict(self):
        return asdict(self)


def _mix_incentive(list_price, pool, secondary_total, incentive_pct):
    """
    Solves the mix-mode system for the incentive in UF.

    The incentive is a percentage p of the deed total T, and T itself depends
    on the discount left in the pool:
        T = list - (pool - p*T) + secondaries  =>  T = (list - pool + secondaries) / (1 - p)
    """
    if pool <= 0 or incentive_pct <= 0:
        return 0.0
    p = incentive_pct / 100
    if p >= 1:
        return pool
    total = (list_price - pool + secondary_total) / (1 - p)
    return clamp(p * total, 0.0, pool)


def resolve_mode(mode, adjusted, secondary_total=0.0, incentive_pct=None, max_incentive_pct=None):
    """
    Splits the pool between discount and bono for the selected mode.

    - descuento: the whole pool is a discount on the unit, bono = 0.
    - bono: no discount, the whole pool becomes bono pie.
    - mix: the user's incentive_pct (percent of deed total, optionally capped
      by the project policy) fixes the bono; what is left of the pool is the
      discount, re-expressed as a percentage of list price.
    """
    mode = normalize_mode(mode)
    list_price = adjusted.list_price
    pool = adjusted.max_incentive_pool_uf
    secondary_total = max(0.0, to_number(secondary_total))

    if mode == MODE_BONO:
        incentive_uf = pool
        discount_uf = 0.0
    elif mode == MODE_MIX:
        requested_pct = clamp(incentive_pct, 0.0, 100.0)
        cap = to_number(max_incentive_pct)
        if cap > 0:
            requested_pct = min(requested_pct, cap)
        incentive_uf = _mix_incentive(list_price, pool, secondary_total, requested_pct)
        discount_uf = pool - incentive_uf
    else:
        incentive_uf = 0.0
        discount_uf = pool

    net_unit_price = list_price - discount_uf
    total_deed_price = net_unit_price + secondary_total

    return ModeResolution(
        mode=mode,
        discount_pct=safe_div(discount_uf, list_price) * 100,
        discount_uf=discount_uf,
        incentive_uf=incentive_uf,
        incentive_pct=safe_div(incentive_uf, total_deed_price) * 100,
        net_unit_price=net_unit_price,
        secondary_total=secondary_total,
        total_deed_price=total_deed_price,
    )


# --- 3. Percent / UF synchronization ---

def pct_from_uf(uf_amount, total_deed_price):
    """Percent of the deed total for a UF amount, rounded to 2 decimals. 0 when the total is 0."""
    return round2(safe_div(uf_amount, total_deed_price) * 100)


def uf_from_pct(pct, total_deed_price):
    """UF amount for a percent of the deed total, rounded to 2 decimals."""
    return round2(to_number(pct) / 100 * to_number(total_deed_price))


def reservation_uf(reservation_pesos, uf_value):
    """The reservation is a fixed peso amount, converted at today's UF."""
    return safe_div(reservation_pesos, uf_value)


# --- 4. PaymentScheduleBuilder ---

PAYMENT_LINES = (
    ('reserva', 'Reserva'),
    ('promesa', 'Promesa'),
    ('pie', 'Pie'),
    ('credito_hipotecario', 'Crédito Hipotecario'),
    ('bono_pie', 'Bono Pie'),
)


@dataclass(frozen=True)
class PaymentSplit:
    key: str
    label: str
    uf: float
    pct: float
    pesos: float

    def to_dict(self):
        return {
            'key': self.key,
            'label': self.label,
            'uf': round2(self.uf),
            'pct': round2(self.pct),
            'pesos': round(to_number(self.pesos)),
        }


@dataclass(frozen=True)
class PaymentSchedule:
    lines: tuple
    total_deed_price: float
    total_uf: float

    def line(self, key):
        for item in self.lines:
            if item.key == key:
                return item
        raise KeyError(key)

    @property
    def mortgage_credit_uf(self):
        return self.line('credito_hipotecario').uf

    @property
    def is_over_allocated(self):
        """True when the user's splits exceed the deed total and the mortgage credit went negative."""
        return self.mortgage_credit_uf < 0

    def to_dict(self):
        return {
            'lines': [item.to_dict() for item in self.lines],
            'total_uf': round2(self.total_uf),
            'total_pct': pct_from_uf(self.total_uf, self.total_deed_price),
            'over_allocated': self.is_over_allocated,
        }


def build_payment_schedule(total_deed_price, uf_value, reservation_pesos,
                           promise_uf=0.0, down_payment_uf=0.0, incentive_uf=0.0):
    """
    Builds the payment form for a deed total.

    Mortgage credit is the balancing line, so the schedule always adds up to
    the deed total. It goes negative when the other lines over-allocate; that
    is reported through is_over_allocated, not corrected.
    """
    total_deed_price = to_number(total_deed_price)
    uf_value = to_number(uf_value)

    amounts = {
        'reserva': reservation_uf(reservation_pesos, uf_value),
        'promesa': to_number(promise_uf),
        'pie': to_number(down_payment_uf),
        'bono_pie': to_number(incentive_uf),
    }
    amounts['credito_hipotecario'] = total_deed_price - (
        amounts['reserva'] + amounts['promesa'] + amounts['pie'] + amounts['bono_pie']
    )

    lines = tuple(
        PaymentSplit(
            key=key,
            label=label,
            uf=amounts[key],
            pct=safe_div(amounts[key], total_deed_price) * 100,
            pesos=amounts[key] * uf_value,
        )
        for key, label in PAYMENT_LINES
    )

    return PaymentSchedule(
        lines=lines,
        total_deed_price=total_deed_price,
        total_uf=sum(item.uf for item in lines),
    )
