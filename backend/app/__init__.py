from flask import Flask, current_app
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any

load_dotenv()

db_engine = None
SessionLocal = None
_db_url: Optional[str] = None
jwt = JWTManager()


def _build_engine(db_url: str):
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        return create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_url, echo=False, future=True, pool_pre_ping=True)


def _init_db(db_url: str):
    global db_engine, SessionLocal, _db_url
    _db_url = db_url
    db_engine = _build_engine(db_url)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))


def create_app(config: Optional[Dict[str, Any]] = None):
    from .config.settings import load_settings
    from .services.printing import SimulatedLabelPrinter

    app = Flask(__name__)
    app.config.update(load_settings())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])

    _init_db(app.config['DATABASE_URL'])

    jwt.init_app(app)
    _register_jwt_handlers()

    if 'LABEL_PRINTER' not in app.config:
        app.config['LABEL_PRINTER'] = SimulatedLabelPrinter(
            delay_seconds=app.config['LABEL_PRINT_DELAY_SECONDS'],
            failure_rate=app.config['LABEL_PRINT_FAILURE_RATE'],
        )

    from .routes.service_tasks import tasks_bp
    from .routes.customers import customers_bp
    from .routes.labels import labels_bp
    from .routes.activity_logs import activity_bp
    from .routes.dashboard import dashboard_bp
    from .routes.reports import rpt_bp
    from .routes.users import users_bp
    from .routes.support import support_bp
    app.register_blueprint(tasks_bp, url_prefix='/api/service-tasks')
    app.register_blueprint(customers_bp, url_prefix='/api/customers')
    app.register_blueprint(labels_bp, url_prefix='/api/labels')
    app.register_blueprint(activity_bp, url_prefix='/api/activity-logs')
    app.register_blueprint(dashboard_bp, url_prefix='/api/dashboard')
    app.register_blueprint(rpt_bp, url_prefix='/api/reports')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(support_bp, url_prefix='/api/support')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        try:
            SessionLocal.rollback()
        except SQLAlchemyError:
            app.logger.warning('Session rollback failed', exc_info=True)
        if isinstance(e, HTTPException):
            return {'error': e.description or e.name}, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {'error': 'Internal Server Error'}, 500

    return app


def _register_jwt_handlers():
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return {'error': 'Unauthorized', 'details': reason}, 401

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return {'error': 'Unauthorized', 'details': reason}, 401

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return {'error': 'Unauthorized', 'details': 'Token has expired'}, 401


def get_db():
    return SessionLocal()


def get_checked_db():
    """Return a session whose connection has just answered ``SELECT 1``.

    On failure the engine is disposed and rebuilt exactly once. The rebuilt
    session is returned even if it also fails its check, so the caller's next
    query raises the real database error.
    """
    session = SessionLocal()
    try:
        session.execute(text('SELECT 1'))
        return session
    except SQLAlchemyError as e:
        current_app.logger.warning('Database connection test failed, attempting to reconnect: %s', e)
    try:
        SessionLocal.remove()
        db_engine.dispose()
    except SQLAlchemyError as e:
        current_app.logger.warning('Disconnect error (ignored): %s', e)
    _init_db(_db_url)
    session = SessionLocal()
    try:
        session.execute(text('SELECT 1'))
        current_app.logger.info('Database reconnection successful')
    except SQLAlchemyError:
        current_app.logger.exception('Database reconnection failed')
    return session
