# config.py

import os
from dotenv import load_dotenv

# Get the base directory of the application
basedir = os.path.abspath(os.path.dirname(__file__))

# Load the .env file from the repository root.
load_dotenv(os.path.join(basedir, '..', '.env'))


def _csv_env(name, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    """
    Contains all the configuration variables for the application:
    database, Supabase token verification, mail, the UF exchange-rate
    collaborators and quotation defaults.
    """
    # --- Database Settings ---
    # Supabase Postgres in production. Falls back to a local SQLite file.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'inverapp.db')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Secret Keys ---
    SECRET_KEY = os.environ.get('SECRET_KEY')
    SUPABASE_JWT_SECRET = os.environ.get('SUPABASE_JWT_SECRET')

    # --- Email Settings ---
    MAIL_SERVER = os.environ.get('MAIL_SERVER') or 'smtp.office365.com'
    MAIL_PORT = int(os.environ.get('MAIL_PORT') or 587)
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS') is not None
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_RECIPIENT = os.environ.get('MAIL_DEFAULT_RECIPIENT')

    # --- UF Exchange Rate Collaborators ---
    # Primary source returns {"serie": [{"valor": 37000.5, ...}]}.
    UF_PRIMARY_API_URL = os.environ.get('UF_PRIMARY_API_URL') or 'https://mindicador.cl/api/uf'
    # Backup source returns {"UFs": [{"Valor": "37.000,50", ...}]}.
    UF_BACKUP_API_URL = os.environ.get('UF_BACKUP_API_URL') or \
        'https://api.cmfchile.cl/api-sbifv3/recursos_api/uf'
    UF_BACKUP_API_KEY = os.environ.get('UF_BACKUP_API_KEY')
    UF_REQUEST_TIMEOUT = float(os.environ.get('UF_REQUEST_TIMEOUT') or 10)

    # --- Quotation Defaults ---
    # Used when a project has no commercial policy with its own reservation amount.
    DEFAULT_RESERVATION_PESOS = float(os.environ.get('DEFAULT_RESERVATION_PESOS') or 100000)

    # --- Dashboard ---
    DASHBOARD_TREND_MONTHS = int(os.environ.get('DASHBOARD_TREND_MONTHS') or 6)
    DASHBOARD_RANKING_MONTHS = int(os.environ.get('DASHBOARD_RANKING_MONTHS') or 3)
    DASHBOARD_TOP_N = int(os.environ.get('DASHBOARD_TOP_N') or 5)

    # --- CORS ---
    CORS_ORIGINS = _csv_env('CORS_ORIGINS', [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
        "http://localhost:5000",
    ])

    @staticmethod
    def validate_email_config(config):
        """Raises ValueError when the SMTP settings needed to send mail are missing."""
        missing = [name for name in ('MAIL_SERVER', 'MAIL_USERNAME', 'MAIL_PASSWORD')
                   if not config.get(name)]
        if missing:
            raise ValueError(f"Missing email settings: {', '.join(missing)}")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test-secret-key'
    SUPABASE_JWT_SECRET = 'test-jwt-secret-with-enough-length-for-hs256'
    MAIL_USERNAME = None
    MAIL_PASSWORD = None
    UF_BACKUP_API_KEY = 'test-key'
    DEFAULT_RESERVATION_PESOS = 100000
