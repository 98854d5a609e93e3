"""
Pytest configuration and shared fixtures for bakeryops tests.
"""
import os
import tempfile
from uuid import uuid4

import pytest

from bakeryops import create_app
from bakeryops.extensions import db
from bakeryops.models import (
    Client,
    InventoryItem,
    PriceList,
    PriceListItem,
    PhaseTrigger,
    Product,
    ProductionPhase,
    ProductRecipe,
    StockMovement,
)
from bakeryops.services.costing_engine import usage_units_per_purchase_unit


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    # Create a temporary file to use as the database
    db_fd, db_path = tempfile.mkstemp()

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'RATELIMIT_ENABLED': False,
        'BAKERY_TIMEZONE': 'America/Mexico_City',
    })

    with app.app_context():
        db.create_all()

    yield app

    # Clean up database
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_context(app):
    """Provide an application context for tests that need it."""
    with app.app_context():
        yield


def unique_name(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:8]}"


@pytest.fixture
def make_item(app_context):
    """Create an inventory item, optionally with opening stock posted to the ledger."""

    def _make(name=None, unit_purchase='kg', unit_usage='g', cost=0.0, pack=None,
              stock=0.0, min_stock=0.0):
        if pack is None:
            pack = usage_units_per_purchase_unit(unit_purchase, unit_usage, 1.0)
        item = InventoryItem(
            name=name or unique_name('Item'),
            unit_purchase=unit_purchase,
            unit_usage=unit_usage,
            cost_per_purchase_unit=cost,
            quantity_per_purchase_unit=pack,
            current_stock=stock,
            min_stock_threshold=min_stock,
        )
        db.session.add(item)
        db.session.flush()
        if stock:
            db.session.add(StockMovement(item_id=item.id, qty_change=stock, move_type='purchase',
                                         stock_after=stock, notes='opening stock'))
        db.session.commit()
        return item

    return _make


@pytest.fixture
def make_product(app_context):
    """Create a product from ``[(item, quantity_per_unit, unit), ...]``."""

    def _make(lines=(), batch_size=20, name=None, phases=()):
        product = Product(name=name or unique_name('Product'), batch_size_units=batch_size)
        for item, quantity, unit in lines:
            product.recipes.append(ProductRecipe(inventory_item_id=item.id, quantity=quantity, unit=unit))
        for order, (phase_name, triggers) in enumerate(phases, start=1):
            phase = ProductionPhase(name=phase_name, sequence_order=order)
            for seconds, trigger_type, text in triggers:
                phase.triggers.append(PhaseTrigger(trigger_time_seconds=seconds, trigger_type=trigger_type,
                                                   instruction_text=text))
            product.phases.append(phase)
        db.session.add(product)
        db.session.commit()
        return product

    return _make


@pytest.fixture
def make_client(app_context):
    """Create a client, optionally attached to a price list of ``{product: price}``."""

    def _make(prices=None, name=None):
        client = Client(name=name or unique_name('Cafe'))
        if prices is not None:
            price_list = PriceList(name=unique_name('List'))
            for product, price in prices.items():
                price_list.items.append(PriceListItem(product_id=product.id, price=price))
            client.price_list = price_list
        db.session.add(client)
        db.session.commit()
        return client

    return _make
