# inverapp/services/broker_commission.py
# Broker commission settlement ("liquidación") calculator.
# Formulas mirror the commercial team's spreadsheet; cell references are kept
# next to each step so the two can be compared line by line.

from dataclasses import dataclass, asdict

from inverapp.utils.math_utils import to_number, safe_div, floor_decimals, clamp, round2


@dataclass(frozen=True)
class CommissionSettlement:
    precio_lista: float
    descuento_disponible: float           # Unit discount, fraction
    precio_minimo: float
    comision_pct: float                   # Percent, as stored for the broker
    comision_uf: float
    total_secundarios: float
    recuperacion_total_minima: float
    descuento_disponible_con_comision_uf: float
    descuento_disponible_con_comision_pct: float
    bono_descuento_pct: float
    descuento_disponible_bono_pie_pct: float
    uf_disponible_dcto: float
    uf_disponible_broker: float
    dcto_disponible_con_comision_uf: float
    has_commission: bool

    def to_dict(self):
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, float):
                data[key] = round2(value) if key != 'descuento_disponible' else value
        return data


def calculate_settlement(list_price, unit_discount, commission_pct=None, secondary_prices=(),
                         fixed_discount_pct=0.0, bono_pie_pct=0.0, include_secondaries=False):
    """
    Computes the broker commission settlement for one unit.

    Args:
        list_price: Unit list price in UF
        unit_discount: Unit discount as a fraction (0.10 = 10%)
        commission_pct: Broker commission for the project in percent, or None when
                        the broker has no agreement for it
        secondary_prices: List prices (UF) of the secondary units added to the sale
        fixed_discount_pct: Discount the seller commits to, in percent
        bono_pie_pct: Bono pie offered, in percent
        include_secondaries: Whether the commission also applies to secondary units

    Returns:
        CommissionSettlement
    """
    precio_lista = max(0.0, to_number(list_price))
    descuento = clamp(unit_discount, 0.0, 1.0)
    has_commission = commission_pct is not None
    comision_pct = clamp(commission_pct, 0.0, 100.0) if has_commission else 0.0
    total_secundarios = sum(max(0.0, to_number(price)) for price in secondary_prices or ())
    fixed_discount = to_number(fixed_discount_pct) / 100
    bono_pie = to_number(bono_pie_pct) / 100

    # D23: minimum price the seller accepts
    precio_minimo = precio_lista * (1 - descuento)
    comision_uf = precio_minimo * comision_pct / 100

    # D37: what the seller must recover once the broker is paid
    recuperacion = precio_minimo + total_secundarios + comision_uf
    descuento_con_comision_uf = (precio_lista + total_secundarios) - recuperacion
    descuento_con_comision_pct = safe_div(descuento_con_comision_uf, precio_lista) * 100

    # =ROUNDDOWN(((U29*(1-D45)+V29)-D37)/((U29*(1-D45))+V29);4)
    base_con_descuento = precio_lista * (1 - fixed_discount)
    denominador_bono = base_con_descuento + total_secundarios
    bono_descuento_pct = 0.0
    if denominador_bono > 0:
        bono_descuento_pct = floor_decimals((denominador_bono - recuperacion) / denominador_bono, 4) * 100

    # =ROUNDDOWN(1-((D37/(1-D56)-V29)/U29);4)
    descuento_bono_pie_pct = 0.0
    if precio_lista > 0 and (1 - bono_pie) != 0:
        ratio = 1 - (((recuperacion / (1 - bono_pie)) - total_secundarios) / precio_lista)
        descuento_bono_pie_pct = floor_decimals(ratio, 4) * 100

    uf_disponible_dcto = precio_lista * descuento
    uf_disponible_broker = uf_disponible_dcto - comision_uf

    # =IF(D27="SI";(D23+V29)*D31;D23*D31)
    base_comision = precio_minimo + total_secundarios if include_secondaries else precio_minimo
    dcto_con_comision_uf = base_comision * comision_pct / 100

    return CommissionSettlement(
        precio_lista=precio_lista,
        descuento_disponible=descuento,
        precio_minimo=precio_minimo,
        comision_pct=comision_pct,
        comision_uf=comision_uf,
        total_secundarios=total_secundarios,
        recuperacion_total_minima=recuperacion,
        descuento_disponible_con_comision_uf=descuento_con_comision_uf,
        descuento_disponible_con_comision_pct=descuento_con_comision_pct,
        bono_descuento_pct=bono_descuento_pct,
        descuento_disponible_bono_pie_pct=descuento_bono_pie_pct,
        uf_disponible_dcto=uf_disponible_dcto,
        uf_disponible_broker=uf_disponible_broker,
        dcto_disponible_con_comision_uf=dcto_con_comision_uf,
        has_commission=has_commission,
    )
