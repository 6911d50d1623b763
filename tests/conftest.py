"""
Shared test fixtures: an app on in-memory SQLite, a test client, signed
Supabase-style tokens and a small seeded stock.
"""

from datetime import date, datetime, timedelta, timezone

import jwt
import pytest

from inverapp import create_app, db
from inverapp.config import TestingConfig
from inverapp.models import (
    StockUnit,
    Broker,
    BrokerProjectCommission,
    ProjectCommercialPolicy,
    FinancialValue,
)

PROJECT = 'Edificio Norte'
BROKER_ID = 'broker-1'
BROKER_SLUG = 'corredora-sur'
BROKER_TOKEN = 'tok-abc-123'
UF_TODAY = 37000.0


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(role='SALES', email='seller@inverapp.cl', sub='user-1', username=None,
               expires_in=timedelta(hours=1), secret=TestingConfig.SUPABASE_JWT_SECRET):
    payload = {
        'sub': sub,
        'email': email,
        'aud': 'authenticated',
        'exp': datetime.now(timezone.utc) + expires_in,
        'user_metadata': {'role': role, 'username': username},
    }
    return jwt.encode(payload, secret, algorithm='HS256')


@pytest.fixture
def auth_headers():
    def _headers(role='SALES', **kwargs):
        return {'Authorization': f'Bearer {make_token(role=role, **kwargs)}'}
    return _headers


@pytest.fixture
def seeded(app):
    """
    One project with a main unit (3000 UF, 10% discount), a parking lot,
    a storage room and a reserved unit; one broker at 5% with a public link;
    a commercial policy and today's UF value.
    """
    main = StockUnit(proyecto_nombre=PROJECT, unidad='101', tipologia='2D2B', tipo_bien='DEPARTAMENTO',
                     piso='1', sup_util=55.0, sup_terraza=8.0, sup_total=63.0,
                     valor_lista=3000.0, descuento=0.10, estado_unidad='Disponible')
    parking = StockUnit(proyecto_nombre=PROJECT, unidad='E-1', tipo_bien='ESTACIONAMIENTO',
                        valor_lista=300.0, descuento=0.0, estado_unidad='Disponible')
    storage = StockUnit(proyecto_nombre=PROJECT, unidad='B-1', tipo_bien='BODEGA',
                        valor_lista=100.0, descuento=0.0, estado_unidad='Disponible')
    reserved = StockUnit(proyecto_nombre=PROJECT, unidad='102', tipo_bien='DEPARTAMENTO',
                         valor_lista=3100.0, descuento=0.10, estado_unidad='Reservado')
    other = StockUnit(proyecto_nombre='Parque Sur', unidad='201', tipo_bien='DEPARTAMENTO',
                      valor_lista=2500.0, descuento=0.08, estado_unidad='Disponible')

    broker = Broker(id=BROKER_ID, name='Corredora Sur', business_name='Corredora Sur SpA',
                    email='contacto@corredorasur.cl', slug=BROKER_SLUG, public_access_token=BROKER_TOKEN)
    commission = BrokerProjectCommission(broker_id=BROKER_ID, project_name=PROJECT, commission_rate=5.0)
    policy = ProjectCommercialPolicy(project_name=PROJECT, monto_reserva_pesos=200000.0,
                                     bono_pie_max_pct=0.15, fecha_tope=date(2026, 12, 31),
                                     observaciones='Bono pie hasta 15%', comuna='Providencia')
    uf = FinancialValue(nombre='UF', valor=UF_TODAY, fecha=date.today())

    db.session.add_all([main, parking, storage, reserved, other, broker, commission, policy, uf])
    db.session.commit()

    return {
        'main': main.id,
        'parking': parking.id,
        'storage': storage.id,
        'reserved': reserved.id,
        'other': other.id,
    }
