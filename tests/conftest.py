"""
Shared pytest fixtures and configuration for all tests.

Provides fixtures for the Flask application, the test client, the state
store and a small catalog of products, clients and sales.
"""

import pytest
import sys
import os
from datetime import date

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tostadora import create_app, get_store
from tostadora.models import db
from tostadora.domain import build_product, build_client, cart_item, build_sale


@pytest.fixture(scope='session')
def app_factory():
    """Factory fixture for creating test app instances."""
    def _create_app(config='testing'):
        app = create_app(config)
        app.config['SERVER_NAME'] = 'localhost'
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
        return app
    return _create_app


@pytest.fixture(scope='function')
def fresh_app(app_factory, tmp_path):
    """Create a fresh application for each test with clean database."""
    app = app_factory()
    app.config['BACKUP_FOLDER'] = str(tmp_path / 'backups')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def cloud_app(fresh_app, tmp_path):
    """Application whose cloud store is a SQLite file."""
    fresh_app.config['CLOUD_DATABASE_URL'] = f"sqlite:///{tmp_path / 'cloud.db'}"
    fresh_app.config['ENABLE_CLOUD_SYNC'] = True
    return fresh_app


@pytest.fixture(scope='function')
def client(fresh_app):
    """Create a test client for each test."""
    return fresh_app.test_client()


@pytest.fixture(scope='function')
def store(fresh_app):
    """State store of the fresh application."""
    return get_store()


@pytest.fixture
def sample_product(store):
    """Coffee beans: cost 10, margin 50 (price 15), stock 20."""
    product = build_product({
        'name': 'Colombia Huila 250g',
        'category': 'Grano',
        'costPrice': 10,
        'marginPercentage': 50,
        'stock': 20,
    })
    store.add_product(product)
    return product


@pytest.fixture
def second_product(store):
    """Ground coffee: cost 8, margin 25 (price 10), stock 5."""
    product = build_product({
        'name': 'Brasil Santos Molido',
        'category': 'Molido',
        'costPrice': 8,
        'marginPercentage': 25,
        'stock': 5,
    })
    store.add_product(product)
    return product


@pytest.fixture
def sample_client(store):
    client = build_client({'name': 'Ana Gómez', 'phone': '+54 11 5555-0001'})
    store.add_client(client)
    return client


@pytest.fixture
def sample_sale(store, sample_product, sample_client):
    """Five units of the sample product sold to the sample client, fully paid."""
    sale = build_sale(
        [cart_item(sample_product, 5)],
        client=sample_client,
        amount_paid=75,
        sale_date=date.today(),
    )
    store.add_sale(sale)
    return sale


@pytest.fixture
def debt_sale(store, sample_product, sample_client):
    """Two units sold to the sample client with 10 paid and 20 owed."""
    sale = build_sale(
        [cart_item(sample_product, 2)],
        client=sample_client,
        amount_paid=10,
        sale_date=date.today(),
    )
    store.add_sale(sale)
    return sale


# Pytest configuration
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that round-trip through the cloud database"
    )
    config.addinivalue_line(
        "markers", "api: marks tests as API endpoint tests"
    )
    config.addinivalue_line(
        "markers", "cloud: marks tests that use the cloud store"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test module names and fixtures."""
    for item in items:
        if 'cloud_app' in getattr(item, 'fixturenames', ()):
            item.add_marker(pytest.mark.integration)
        if 'test_routes' in item.nodeid:
            item.add_marker(pytest.mark.api)
        if 'cloud' in item.name.lower() or 'sync' in item.nodeid.lower():
            item.add_marker(pytest.mark.cloud)
