import pytest

from app import create_app
from models import db
from services.allocations import create_allocation
from services.ledger import TxContext


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def registry(app):
    """App context for calling service functions directly."""
    with app.app_context():
        yield app


@pytest.fixture
def tx():
    def make(caller="alice", now=1000):
        return TxContext(caller=caller, now=now)

    return make


@pytest.fixture
def make_allocation(registry, tx):
    def make(caller="alice", now=1000, **overrides):
        params = {
            "label": "Core bonds",
            "percentage": 2500,
            "duration": 100,
            "thesis": "Hold duration while rates stay elevated",
            "asset_classes": ["treasuries", "investment-grade"],
            "initial_value": 500_000,
        }
        params.update(overrides)
        return create_allocation(tx(caller, now), **params)

    return make
