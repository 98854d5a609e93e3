from bakeryops.extensions import db
from bakeryops.models import InventoryCategory, InventoryItem
from bakeryops.services.inventory_service import DEFAULT_CATEGORIES


def test_create_app_command_creates_tables_and_seeds(app, runner):
    result = runner.invoke(args=['create-app'])

    assert result.exit_code == 0, result.output
    assert 'stock_movement' in result.output
    with app.app_context():
        assert InventoryCategory.query.count() == len(DEFAULT_CATEGORIES)


def test_seed_categories_is_repeatable(app, runner):
    runner.invoke(args=['seed-categories'])
    result = runner.invoke(args=['seed-categories'])

    assert result.exit_code == 0
    assert '0 inventory categories seeded' in result.output


def test_verify_stock_passes_when_in_sync(runner, make_item):
    make_item(stock=250)

    result = runner.invoke(args=['verify-stock'])

    assert result.exit_code == 0
    assert 'match' in result.output


def test_verify_stock_fails_on_mismatch(runner, make_item):
    item = make_item(name='Mantequilla', stock=250)
    db.session.query(InventoryItem).filter_by(id=item.id).update({'current_stock': 100})
    db.session.commit()

    result = runner.invoke(args=['verify-stock'])

    assert result.exit_code != 0
    assert 'Mantequilla' in result.output
