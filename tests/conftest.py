import pytest

from expensewise.webapp import create_app

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "ICON_CLASSIFIER": "none",
    "GEMINI_API_KEY": None,
    "DEFAULT_MONTHLY_BUDGET": 100000.0,
    "LOG_LEVEL": "WARNING",
}


@pytest.fixture
def app():
    return create_app(TEST_CONFIG)


@pytest.fixture
def bare_app():
    # No default categories and no global state
    return create_app({**TEST_CONFIG, "SEED_DEFAULTS": False})


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def file_app(tmp_path):
    # Separate connections see each other's commits
    return create_app({**TEST_CONFIG, "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'ledger.db'}"})
