import pytest

from app import create_app
from config import TestingConfig
from extensions import db, sentiment_gateway
from tests.fakes import FakeSentimentClient


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fake_sentiment(app):
    fake = FakeSentimentClient()
    sentiment_gateway.client = fake
    return fake
