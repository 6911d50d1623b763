# inverapp/services/uf_rates.py
"""
UF exchange-rate service.

Today's UF value is read from the valores_financieros table. When it is not
there yet, it is fetched from the primary public API, then from the backup
API, and stored for the rest of the day. There is no retry: a source that
fails is simply skipped, and None is returned when every source fails.
"""

from datetime import date

import requests
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from inverapp import db
from inverapp.models import FinancialValue
from inverapp.utils.math_utils import to_number

UF_NAME = 'UF'


def _valid_uf(value):
    return value is not None and value > 0


def get_stored_uf_value(on_date=None):
    """Returns the stored UF value for a date (default today), or None."""
    on_date = on_date or date.today()
    record = FinancialValue.query.filter_by(nombre=UF_NAME, fecha=on_date).first()
    return record.valor if record else None


def get_last_known_uf_value():
    """Most recent stored UF value regardless of date, or None."""
    record = FinancialValue.query.filter_by(nombre=UF_NAME) \
        .order_by(FinancialValue.fecha.desc()).first()
    return record.valor if record else None


def store_uf_value(value, on_date=None):
    """
    Inserts or updates the UF row for a date.
    Failures are logged and swallowed: the fetched value is still usable
    for the current request even if it could not be cached.
    """
    on_date = on_date or date.today()
    try:
        record = FinancialValue.query.filter_by(nombre=UF_NAME, fecha=on_date).first()
        if record:
            current_app.logger.info(f"Updating UF value for {on_date}: {value}")
            record.valor = value
        else:
            current_app.logger.info(f"Inserting UF value for {on_date}: {value}")
            db.session.add(FinancialValue(nombre=UF_NAME, valor=value, fecha=on_date))
        db.session.commit()
        return True
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error storing UF value: {str(e)}", exc_info=True)
        return False


def fetch_uf_from_primary_api():
    """Primary source. Response: {"serie": [{"fecha": "...", "valor": 37000.5}, ...]}"""
    url = current_app.config['UF_PRIMARY_API_URL']
    timeout = current_app.config['UF_REQUEST_TIMEOUT']
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        serie = (response.json() or {}).get('serie') or []
    except (requests.exceptions.RequestException, ValueError) as e:
        current_app.logger.warning(f"Primary UF API failed: {str(e)}")
        return None

    if not serie:
        current_app.logger.warning("Primary UF API returned no data")
        return None

    value = to_number(serie[0].get('valor'), default=None)
    return value if _valid_uf(value) else None


def fetch_uf_from_backup_api():
    """Backup source. Response: {"UFs": [{"Valor": "37.000,50", "Fecha": "..."}]}"""
    url = current_app.config['UF_BACKUP_API_URL']
    timeout = current_app.config['UF_REQUEST_TIMEOUT']
    params = {'apikey': current_app.config.get('UF_BACKUP_API_KEY'), 'formato': 'json'}
    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        ufs = (response.json() or {}).get('UFs') or []
    except (requests.exceptions.RequestException, ValueError) as e:
        current_app.logger.warning(f"Backup UF API failed: {str(e)}")
        return None

    if not ufs:
        current_app.logger.warning("Backup UF API returned no data")
        return None

    # "37.000,50" -> 37000.5
    value = to_number(ufs[0].get('Valor'), default=None)
    return value if _valid_uf(value) else None


def fetch_latest_uf_value():
    """
    Returns today's UF value: from the database if already stored, otherwise
    from the external APIs (and then stored). None when nothing is available.
    """
    try:
        stored = get_stored_uf_value()
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error reading today's UF value: {str(e)}")
        stored = None

    if _valid_uf(stored):
        return stored

    current_app.logger.info("Today's UF value not found in database, fetching from API...")
    for fetcher in (fetch_uf_from_primary_api, fetch_uf_from_backup_api):
        value = fetcher()
        if _valid_uf(value):
            store_uf_value(value)
            return value

    current_app.logger.error("Every UF source failed")
    return None


def get_uf_value_summary():
    """Service wrapper used by the API: today's value, falling back to the last known one."""
    value = fetch_latest_uf_value()
    if value is not None:
        return {"success": True, "uf_value": value, "is_current": True}

    last_known = get_last_known_uf_value()
    if last_known is not None:
        return {"success": True, "uf_value": last_known, "is_current": False}

    return {"success": False, "error": "Valor de UF no disponible."}, 503
