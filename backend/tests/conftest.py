import os, sys, pytest
# Ensure the backend directory is on path so 'app' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
import app as app_module
from app import create_app
from app.models.base import Base
from app.services.printing import SimulatedLabelPrinter
# Import all model modules to ensure tables are registered before create_all
import app.models.user  # noqa: F401
import app.models.customer  # noqa: F401
import app.models.service_task  # noqa: F401
import app.models.activity_log  # noqa: F401
import app.models.printed_label  # noqa: F401
import app.models.daily_metric  # noqa: F401

TEST_CONFIG = {
    'TESTING': True,
    'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-secret-key-long-enough-for-hs256-signing',
    'LABEL_PRINT_DELAY_SECONDS': 0,
    'LABEL_PRINT_FAILURE_RATE': 0,
    'RESEND_API_KEY': None,
    'SUPPORT_TEAM_EMAIL': None,
    'APP_URL': 'http://shop.test',
}


@pytest.fixture(scope='session')
def app_instance():
    app = create_app(dict(TEST_CONFIG))
    yield app


@pytest.fixture(autouse=True)
def reset_db(app_instance):
    """Fresh tables and default settings for every test."""
    # module attributes: get_checked_db may have rebuilt the engine
    app_module.SessionLocal.remove()
    engine = app_module.db_engine
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    app_instance.config['LABEL_PRINTER'] = SimulatedLabelPrinter(delay_seconds=0, failure_rate=0)
    app_instance.config['ENFORCE_STATUS_TRANSITIONS'] = True
    app_instance.config['RESEND_API_KEY'] = None
    app_instance.config['SUPPORT_TEAM_EMAIL'] = None
    yield
    app_module.SessionLocal.remove()


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def client(app_context):
    return app_context.test_client()
