from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
import requests

from inverapp import db
from inverapp.models import FinancialValue
from inverapp.services import uf_rates


def _response(payload, status=200):
    response = MagicMock()
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} error")
    return response


@pytest.fixture
def http(monkeypatch):
    """Replaces requests.get inside uf_rates; configure .side_effect per test."""
    get = MagicMock()
    monkeypatch.setattr(uf_rates.requests, 'get', get)
    return get


def test_stored_value_skips_http(app, http):
    db.session.add(FinancialValue(nombre='UF', valor=37100.5, fecha=date.today()))
    db.session.commit()

    assert uf_rates.fetch_latest_uf_value() == 37100.5
    http.assert_not_called()


def test_primary_api_value_is_stored(app, http):
    http.return_value = _response({'serie': [{'fecha': '2026-10-19', 'valor': 37250.12}]})

    assert uf_rates.fetch_latest_uf_value() == 37250.12
    assert uf_rates.get_stored_uf_value() == 37250.12

    # Second call reads the stored row.
    uf_rates.fetch_latest_uf_value()
    assert http.call_count == 1


def test_backup_api_used_when_primary_fails(app, http):
    http.side_effect = [
        requests.exceptions.ConnectionError("down"),
        _response({'UFs': [{'Valor': '37.000,50', 'Fecha': '2026-10-19'}]}),
    ]

    assert uf_rates.fetch_latest_uf_value() == 37000.5
    backup_call = http.call_args_list[1]
    assert backup_call.kwargs['params']['apikey'] == 'test-key'


def test_primary_empty_series_falls_back(app, http):
    http.side_effect = [
        _response({'serie': []}),
        _response({'UFs': [{'Valor': '36.999,99'}]}),
    ]
    assert uf_rates.fetch_latest_uf_value() == 36999.99


def test_every_source_failing_returns_none(app, http):
    http.side_effect = [_response({}, status=500), _response({'UFs': []})]
    assert uf_rates.fetch_latest_uf_value() is None


def test_store_updates_existing_row(app):
    uf_rates.store_uf_value(37000)
    uf_rates.store_uf_value(37001)
    rows = FinancialValue.query.filter_by(nombre='UF').all()
    assert len(rows) == 1
    assert rows[0].valor == 37001


def test_summary_falls_back_to_last_known(app, http):
    http.side_effect = requests.exceptions.Timeout("slow")
    db.session.add(FinancialValue(nombre='UF', valor=36900.0, fecha=date.today() - timedelta(days=3)))
    db.session.commit()

    result = uf_rates.get_uf_value_summary()
    assert result == {"success": True, "uf_value": 36900.0, "is_current": False}


def test_summary_without_any_value(app, http):
    http.side_effect = requests.exceptions.Timeout("slow")
    body, status = uf_rates.get_uf_value_summary()
    assert status == 503
    assert body["success"] is False
