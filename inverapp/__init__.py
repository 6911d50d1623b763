# inverapp/__init__.py

import logging
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from sqlalchemy import text
from .config import Config

db = SQLAlchemy()
migrate = Migrate()

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Configure logging to show INFO level messages
    app.logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter('[%(asctime)s] %(levelname)s: %(message)s')
    handler.setFormatter(formatter)
    app.logger.addHandler(handler)

    db.init_app(app)
    migrate.init_app(app, db)

    # The broker quote page is served from a different origin than the API.
    CORS(app, supports_credentials=True, origins=app.config['CORS_ORIGINS'])

    # --- REGISTER BLUEPRINTS ---
    from .api.stock import bp as stock_bp
    from .api.quotations import bp as quotations_bp
    from .api.commissions import bp as commissions_bp
    from .api.dashboard import bp as dashboard_bp
    from .api.notifications import bp as notifications_bp
    from .api.broker_quote import bp as broker_quote_bp
    from .auth import bp as auth_bp

    app.register_blueprint(stock_bp, url_prefix='/api')
    app.register_blueprint(quotations_bp, url_prefix='/api')
    app.register_blueprint(commissions_bp, url_prefix='/api')
    app.register_blueprint(dashboard_bp, url_prefix='/api')
    app.register_blueprint(notifications_bp, url_prefix='/api')
    app.register_blueprint(broker_quote_bp, url_prefix='/api')
    app.register_blueprint(auth_bp, url_prefix='/api')

    @app.route('/api/health', methods=['GET'])
    def health():
        try:
            db.session.execute(text('SELECT 1'))
            database = {"status": "connected"}
            status_code = 200
        except Exception as e:
            app.logger.error(f"Health check database error: {str(e)}")
            database = {"status": "disconnected"}
            status_code = 503
        return jsonify({"status": "ok" if status_code == 200 else "degraded",
                        "database": database}), status_code

    with app.app_context():
        from . import models  # noqa: F401

    return app
