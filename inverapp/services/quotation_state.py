# inverapp/services/quotation_state.py
"""
Quotation form state and its reducer.

The whole form lives in one frozen, serializable QuotationState. Every user
edit goes through reduce(state, action, value), which returns a new state;
compute_breakdown(state) derives prices and the payment schedule from it.

Each editable payment line (promesa, pie) remembers which field the user
typed in last. That field is the source of truth and the other one is always
re-derived against the current deed total, so a change of unit or mode
never feeds a stale percentage back into the amounts.
"""

from dataclasses import dataclass, field, replace, asdict

from inverapp.utils.math_utils import to_number, round2, clamp
from inverapp.utils.formatting import format_uf, format_pct, uf_to_pesos
from .pricing_engine import (
    MODE_DISCOUNT,
    normalize_mode,
    compute_adjusted_discount,
    resolve_mode,
    build_payment_schedule,
    pct_from_uf,
    uf_from_pct,
)
from .records import parse_unit

SOURCE_UF = 'uf'
SOURCE_PCT = 'pct'


@dataclass(frozen=True)
class SplitInput:
    """One user-editable payment line."""
    uf: float = 0.0
    pct: float = 0.0
    source: str = SOURCE_PCT

    def resolve(self, total_deed_price):
        """Returns a copy whose derived field matches the source field for this total."""
        if self.source == SOURCE_UF:
            uf = round2(self.uf)
            return SplitInput(uf=uf, pct=pct_from_uf(uf, total_deed_price), source=SOURCE_UF)
        pct = round2(self.pct)
        return SplitInput(uf=uf_from_pct(pct, total_deed_price), pct=pct, source=SOURCE_PCT)


@dataclass(frozen=True)
class QuotationState:
    unit: object = None                     # UnitRecord or None
    secondary_units: tuple = ()
    commission_rate: float = 0.0            # 0-1
    uf_value: float = 0.0
    reservation_pesos: float = 0.0
    mode: str = MODE_DISCOUNT
    incentive_pct: float = 0.0              # Mix mode input, percent of deed total
    max_incentive_pct: float = 0.0          # Project policy cap, 0 means none
    promise: SplitInput = field(default_factory=SplitInput)
    down_payment: SplitInput = field(default_factory=SplitInput)
    client_name: str = ''
    client_rut: str = ''

    @property
    def secondary_total(self):
        return sum(unit.list_price for unit in self.secondary_units)


# --- Reducer ---

def _select_unit(state, value):
    unit = parse_unit(value)
    return replace(state, unit=unit, secondary_units=(), incentive_pct=0.0)


def _add_secondary(state, value):
    unit = parse_unit(value)
    if unit is None or any(item.id == unit.id for item in state.secondary_units):
        return state
    return replace(state, secondary_units=state.secondary_units + (unit,))


def _remove_secondary(state, value):
    remaining = tuple(item for item in state.secondary_units if str(item.id) != str(value))
    return replace(state, secondary_units=remaining)


def _set_client(state, value):
    value = value or {}
    if not isinstance(value, dict):
        raise ValueError("Los datos del cliente deben ser un objeto con nombre y RUT.")
    return replace(state,
                   client_name=str(value.get('name') or '').strip(),
                   client_rut=str(value.get('rut') or '').strip())


_ACTIONS = {
    'select_unit': _select_unit,
    'add_secondary': _add_secondary,
    'remove_secondary': _remove_secondary,
    'set_mode': lambda s, v: replace(s, mode=normalize_mode(v)),
    'set_incentive_pct': lambda s, v: replace(s, incentive_pct=clamp(v, 0.0, 100.0)),
    'set_max_incentive_pct': lambda s, v: replace(s, max_incentive_pct=clamp(v, 0.0, 100.0)),
    'set_promise_uf': lambda s, v: replace(s, promise=SplitInput(uf=round2(v), source=SOURCE_UF)),
    'set_promise_pct': lambda s, v: replace(s, promise=SplitInput(pct=round2(v), source=SOURCE_PCT)),
    'set_down_payment_uf': lambda s, v: replace(s, down_payment=SplitInput(uf=round2(v), source=SOURCE_UF)),
    'set_down_payment_pct': lambda s, v: replace(s, down_payment=SplitInput(pct=round2(v), source=SOURCE_PCT)),
    'set_uf_value': lambda s, v: replace(s, uf_value=max(0.0, to_number(v))),
    'set_commission_rate': lambda s, v: replace(s, commission_rate=clamp(v, 0.0, 1.0)),
    'set_reservation_pesos': lambda s, v: replace(s, reservation_pesos=max(0.0, to_number(v))),
    'set_client': _set_client,
}

ACTIONS = tuple(_ACTIONS)


def reduce(state, action, value=None):
    """
    Applies one edit and returns the new state with both payment lines
    re-synchronized against the resulting deed total.

    Raises:
        ValueError: for an unknown action name
    """
    try:
        handler = _ACTIONS[action]
    except KeyError:
        raise ValueError(f"Unknown quotation action: {action!r}")

    new_state = handler(state, value)
    total = _resolve_pricing(new_state)[1].total_deed_price
    return replace(new_state,
                   promise=new_state.promise.resolve(total),
                   down_payment=new_state.down_payment.resolve(total))


# --- Breakdown ---

def _resolve_pricing(state):
    unit = state.unit
    adjusted = compute_adjusted_discount(
        unit.list_price if unit else 0.0,
        unit.base_discount_rate if unit else 0.0,
        state.commission_rate,
    )
    resolution = resolve_mode(
        state.mode,
        adjusted,
        secondary_total=state.secondary_total,
        incentive_pct=state.incentive_pct,
        max_incentive_pct=state.max_incentive_pct,
    )
    return adjusted, resolution


@dataclass(frozen=True)
class QuotationBreakdown:
    adjusted: object
    resolution: object
    promise: SplitInput
    down_payment: SplitInput
    schedule: object
    uf_value: float

    def to_dict(self):
        adjusted = self.adjusted
        res = self.resolution
        return {
            'adjusted_discount': {
                'net_at_nominal_discount': round2(adjusted.net_at_nominal_discount),
                'broker_commission_uf': round2(adjusted.broker_commission_uf),
                'price_after_commission': round2(adjusted.price_after_commission),
                'available_discount_uf': round2(adjusted.available_discount_uf),
                'adjusted_discount_pct': round2(adjusted.adjusted_discount_rate * 100),
                'max_incentive_pool_uf': round2(adjusted.max_incentive_pool_uf),
            },
            'mode': res.mode,
            'list_price': round2(adjusted.list_price),
            'discount_pct': round2(res.discount_pct),
            'discount_uf': round2(res.discount_uf),
            'incentive_uf': round2(res.incentive_uf),
            'incentive_pct': round2(res.incentive_pct),
            'net_unit_price': round2(res.net_unit_price),
            'secondary_total': round2(res.secondary_total),
            'total_deed_price': round2(res.total_deed_price),
            'promise': asdict(self.promise),
            'down_payment': asdict(self.down_payment),
            'payment_schedule': self.schedule.to_dict(),
            'uf_value': self.uf_value,
            'display': {
                'list_price': format_uf(adjusted.list_price),
                'discount_pct': format_pct(res.discount_pct),
                'incentive_pct': format_pct(res.incentive_pct),
                'total_deed_price': format_uf(res.total_deed_price),
                'total_deed_price_pesos': uf_to_pesos(res.total_deed_price, self.uf_value),
                'mortgage_credit': format_uf(self.schedule.mortgage_credit_uf),
                'mortgage_credit_pesos': uf_to_pesos(self.schedule.mortgage_credit_uf, self.uf_value),
            },
        }


def compute_breakdown(state):
    adjusted, resolution = _resolve_pricing(state)
    total = resolution.total_deed_price
    promise = state.promise.resolve(total)
    down_payment = state.down_payment.resolve(total)

    schedule = build_payment_schedule(
        total,
        state.uf_value,
        state.reservation_pesos,
        promise_uf=promise.uf,
        down_payment_uf=down_payment.uf,
        incentive_uf=resolution.incentive_uf,
    )

    return QuotationBreakdown(
        adjusted=adjusted,
        resolution=resolution,
        promise=promise,
        down_payment=down_payment,
        schedule=schedule,
        uf_value=state.uf_value,
    )


# --- Serialization ---

def state_to_dict(state):
    return {
        'unit': state.unit.to_dict() if state.unit else None,
        'secondary_units': [unit.to_dict() for unit in state.secondary_units],
        'commission_rate': state.commission_rate,
        'uf_value': state.uf_value,
        'reservation_pesos': state.reservation_pesos,
        'mode': state.mode,
        'incentive_pct': state.incentive_pct,
        'max_incentive_pct': state.max_incentive_pct,
        'promise': asdict(state.promise),
        'down_payment': asdict(state.down_payment),
        'client_name': state.client_name,
        'client_rut': state.client_rut,
    }


def _split_from_dict(data):
    if not isinstance(data, dict):
        data = {}
    source = SOURCE_UF if data.get('source') == SOURCE_UF else SOURCE_PCT
    return SplitInput(uf=round2(data.get('uf')), pct=round2(data.get('pct')), source=source)


def state_from_dict(data):
    """
    Rebuilds a state from a browser payload. Missing or invalid fields take
    their defaults; a payload that is not an object raises ValueError.
    """
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError("El estado de la cotización debe ser un objeto.")
    items = data.get('secondary_units')
    secondary = tuple(
        parse_unit(item) for item in (items if isinstance(items, list) else [])
        if isinstance(item, dict)
    )
    unit = data.get('unit')
    return QuotationState(
        unit=parse_unit(unit) if isinstance(unit, dict) else None,
        secondary_units=secondary,
        commission_rate=clamp(data.get('commission_rate'), 0.0, 1.0),
        uf_value=max(0.0, to_number(data.get('uf_value'))),
        reservation_pesos=max(0.0, to_number(data.get('reservation_pesos'))),
        mode=normalize_mode(data.get('mode')),
        incentive_pct=clamp(data.get('incentive_pct'), 0.0, 100.0),
        max_incentive_pct=clamp(data.get('max_incentive_pct'), 0.0, 100.0),
        promise=_split_from_dict(data.get('promise')),
        down_payment=_split_from_dict(data.get('down_payment')),
        client_name=str(data.get('client_name') or ''),
        client_rut=str(data.get('client_rut') or ''),
    )
