from datetime import date, datetime

import pytest

from inverapp import db
from inverapp.models import Broker, Reservation, BrokerCommission, Quotation
from inverapp.services.dashboard import (
    monthly_series,
    month_over_month,
    top_ranking,
    get_dashboard_summary,
)

TODAY = date(2026, 10, 19)


def test_monthly_series_fills_empty_months():
    rows = [
        {'reservation_date': datetime(2026, 10, 2), 'total_price': 3000},
        {'reservation_date': datetime(2026, 10, 15), 'total_price': 2500},
        {'reservation_date': datetime(2026, 7, 1), 'total_price': None},
        {'reservation_date': datetime(2025, 1, 1), 'total_price': 9999},
    ]
    series = monthly_series(rows, 'reservation_date', 'total_price', today=TODAY)

    assert [m['month'] for m in series] == [
        '2026-05', '2026-06', '2026-07', '2026-08', '2026-09', '2026-10']
    assert series[0]['label'] == 'mayo'
    assert series[-1] == {'month': '2026-10', 'label': 'octubre', 'count': 2, 'total': 5500.0}
    assert series[2]['count'] == 1
    assert series[2]['total'] == 0.0
    assert series[1]['count'] == 0


def test_monthly_series_without_rows():
    series = monthly_series([], 'created_at', 'commission_amount', months=3, today=TODAY)
    assert [m['count'] for m in series] == [0, 0, 0]


def test_month_over_month_change():
    rows = [
        {'created_at': datetime(2026, 9, 5), 'commission_amount': 100},
        {'created_at': datetime(2026, 10, 5), 'commission_amount': 150},
        {'created_at': datetime(2026, 10, 6), 'commission_amount': 50},
    ]
    result = month_over_month(rows, 'created_at', 'commission_amount', today=TODAY)
    assert result['current_count'] == 2
    assert result['previous_count'] == 1
    assert result['count_change_pct'] == pytest.approx(100)
    assert result['total_change_pct'] == pytest.approx(100)


def test_month_over_month_without_previous():
    rows = [{'created_at': datetime(2026, 10, 5), 'commission_amount': 150}]
    result = month_over_month(rows, 'created_at', 'commission_amount', today=TODAY)
    assert result['count_change_pct'] == 0.0


def test_top_ranking_orders_and_shares():
    all_rows = [{'project_name': p} for p in ['A', 'A', 'A', 'B', 'C', None]]
    recent = [
        {'project_name': 'A', 'total_price': 100},
        {'project_name': 'B', 'total_price': 200},
        {'project_name': 'B', 'total_price': 300},
        {'project_name': None, 'total_price': 1000},
    ]
    ranking = top_ranking(all_rows, recent, 'project_name', 'total_price')

    assert [r['name'] for r in ranking] == ['B', 'A']
    assert ranking[0]['recent_count'] == 2
    assert ranking[0]['recent_total'] == 500.0
    assert ranking[0]['total_count'] == 1
    assert ranking[0]['participation'] == pytest.approx(200 / 3)
    assert ranking[1]['total_count'] == 3


def test_top_ranking_limit_and_empty():
    recent = [{'broker_name': f'Broker {i}', 'total_price': i} for i in range(8)]
    assert len(top_ranking(recent, recent, 'broker_name', 'total_price', n=5)) == 5
    assert top_ranking([], [], 'broker_name', 'total_price') == []


def test_dashboard_summary(app):
    broker = Broker(id='b1', name='Corredora Sur', slug='sur')
    db.session.add(broker)
    db.session.add_all([
        Reservation(reservation_number='R1', reservation_date=datetime(2026, 10, 1),
                    project_name='Edificio Norte', broker_id='b1', total_price=3000),
        Reservation(reservation_number='R2', reservation_date=datetime(2026, 9, 10),
                    project_name='Edificio Norte', total_price=2800),
        Reservation(reservation_number='R3', reservation_date=datetime(2026, 1, 10),
                    project_name='Parque Sur', total_price=2500),
        BrokerCommission(broker_id='b1', commission_amount=150, created_at=datetime(2026, 10, 2)),
        Quotation(quotation_type='mix', payload={}),
        Quotation(quotation_type='mix', payload={}),
        Quotation(quotation_type='descuento', payload={}),
    ])
    db.session.commit()

    result = get_dashboard_summary(today=TODAY)
    data = result['data']

    assert result['success'] is True
    assert data['totals']['reservations'] == 3
    assert data['totals']['brokers'] == 1
    assert data['totals']['quotations'] == 3
    assert data['quotations_by_mode'] == {'mix': 2, 'descuento': 1}
    assert len(data['monthly_reservations']) == 6
    assert data['reservations_month_over_month']['current_count'] == 1
    assert data['commissions_month_over_month']['current_total'] == 150.0
    assert [p['name'] for p in data['top_projects']] == ['Edificio Norte']
    assert data['top_projects'][0]['participation'] == pytest.approx(100)
    assert [b['name'] for b in data['top_brokers']] == ['Corredora Sur']
