# inverapp/services/dashboard.py
# Aggregations behind the back-office dashboard.
#
# The query functions pull plain rows; every aggregation below works on
# lists of dicts with pandas so it can be tested without a database.

from datetime import date

import pandas as pd
from flask import current_app
from sqlalchemy import func

from inverapp import db
from inverapp.models import Reservation, BrokerCommission, Quotation, Broker, StockUnit

MONTH_LABELS = (
    'enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio',
    'julio', 'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre',
)


def _frame(rows, date_key, value_key):
    """DataFrame with a parsed date column and a numeric value column (missing values = 0)."""
    df = pd.DataFrame(list(rows or []), columns=[date_key, value_key])
    df[date_key] = pd.to_datetime(df[date_key], errors='coerce')
    df = df.dropna(subset=[date_key])
    df[value_key] = pd.to_numeric(df[value_key], errors='coerce').fillna(0.0)
    return df


def monthly_series(rows, date_key, value_key, months=6, today=None):
    """
    Count and total of `value_key` per calendar month for the last `months`
    months, oldest first. Months without rows are included with zeros.
    """
    today = today or date.today()
    periods = pd.period_range(end=pd.Period(pd.Timestamp(today), freq='M'), periods=months, freq='M')

    df = _frame(rows, date_key, value_key)
    if df.empty:
        grouped = pd.DataFrame({'count': 0, 'sum': 0.0}, index=periods)
    else:
        df['month'] = df[date_key].dt.to_period('M')
        grouped = df.groupby('month')[value_key].agg(['count', 'sum']).reindex(periods, fill_value=0)

    return [
        {
            'month': str(period),
            'label': MONTH_LABELS[period.month - 1],
            'count': int(row['count']),
            'total': float(row['sum']),
        }
        for period, row in grouped.iterrows()
    ]


def _pct_change(current, previous):
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def month_over_month(rows, date_key, value_key, today=None):
    """Current vs previous calendar month, with the percent change of count and total."""
    previous, current = monthly_series(rows, date_key, value_key, months=2, today=today)
    return {
        'current_count': current['count'],
        'previous_count': previous['count'],
        'count_change_pct': _pct_change(current['count'], previous['count']),
        'current_total': current['total'],
        'previous_total': previous['total'],
        'total_change_pct': _pct_change(current['total'], previous['total']),
    }


def top_ranking(all_rows, recent_rows, key, value_key, n=5):
    """
    Ranks names (projects, brokers) by how many recent rows they have.

    participation is each name's share of all recent rows, in percent.
    Names without recent rows are left out.
    """
    all_df = pd.DataFrame(list(all_rows or []), columns=[key])
    recent_df = pd.DataFrame(list(recent_rows or []), columns=[key, value_key])
    all_df = all_df[all_df[key].notna() & (all_df[key] != '')]
    recent_df = recent_df[recent_df[key].notna() & (recent_df[key] != '')].copy()

    if recent_df.empty:
        return []

    recent_df[value_key] = pd.to_numeric(recent_df[value_key], errors='coerce').fillna(0.0)
    recent = recent_df.groupby(key)[value_key].agg(['count', 'sum'])
    totals = all_df.groupby(key).size()
    total_recent = int(recent['count'].sum())

    ranking = recent.reset_index().rename(columns={key: 'name'})
    ranking = ranking.sort_values(['count', 'name'], ascending=[False, True]).head(n)

    return [
        {
            'name': row['name'],
            'recent_count': int(row['count']),
            'recent_total': float(row['sum']),
            'total_count': int(totals.get(row['name'], 0)),
            'participation': float(row['count']) / total_recent * 100 if total_recent else 0.0,
        }
        for _, row in ranking.iterrows()
    ]


# --- QUERY + ASSEMBLY ---

def _reservation_rows():
    return [
        {
            'reservation_date': r.reservation_date,
            'total_price': r.total_price,
            'project_name': r.project_name,
            'broker_name': r.broker.name if r.broker else None,
        }
        for r in Reservation.query.all()
    ]


def _commission_rows():
    return [
        {'created_at': c.created_at, 'commission_amount': c.commission_amount}
        for c in BrokerCommission.query.all()
    ]


def get_dashboard_summary(today=None):
    """
    Builds the whole dashboard payload in one call.

    Returns:
        tuple: (dict, status_code) on error, or dict on success
    """
    try:
        today = today or date.today()
        config = current_app.config
        trend_months = config['DASHBOARD_TREND_MONTHS']
        top_n = config['DASHBOARD_TOP_N']

        reservations = _reservation_rows()
        commissions = _commission_rows()

        cutoff = pd.Timestamp(today) - pd.DateOffset(months=config['DASHBOARD_RANKING_MONTHS'])
        recent = [
            r for r in reservations
            if r['reservation_date'] is not None and pd.Timestamp(r['reservation_date']) >= cutoff
        ]

        quotations_by_mode = {
            mode: int(count) for mode, count in
            db.session.query(Quotation.quotation_type, func.count(Quotation.id))
            .group_by(Quotation.quotation_type).all()
        }

        return {
            "success": True,
            "data": {
                "totals": {
                    "reservations": len(reservations),
                    "brokers": db.session.query(func.count(Broker.id)).scalar() or 0,
                    "projects": db.session.query(func.count(func.distinct(StockUnit.proyecto_nombre))).scalar() or 0,
                    "quotations": sum(quotations_by_mode.values()),
                },
                "reservations_month_over_month": month_over_month(
                    reservations, 'reservation_date', 'total_price', today=today),
                "commissions_month_over_month": month_over_month(
                    commissions, 'created_at', 'commission_amount', today=today),
                "monthly_reservations": monthly_series(
                    reservations, 'reservation_date', 'total_price', months=trend_months, today=today),
                "monthly_commissions": monthly_series(
                    commissions, 'created_at', 'commission_amount', months=trend_months, today=today),
                "top_projects": top_ranking(reservations, recent, 'project_name', 'total_price', n=top_n),
                "top_brokers": top_ranking(reservations, recent, 'broker_name', 'total_price', n=top_n),
                "quotations_by_mode": quotations_by_mode,
            }
        }
    except Exception as e:
        current_app.logger.error("Error building dashboard summary: %s", str(e), exc_info=True)
        return ({"success": False, "error": f"Database error: {str(e)}"}, 500)
