import pytest

from bakeryops.extensions import db
from bakeryops.models import InventoryItem, StockMovement
from bakeryops.services.exceptions import (
    CompositionCycleError,
    NotFoundError,
    RejectedNegativeStock,
    ValidationError,
)
from bakeryops.services.inventory_adjustment import produce_compound_stock, validate_stock_ledger_sync
from bakeryops.services.inventory_service import find_composition_cycle, set_item_compositions


def _lines(*pairs):
    return [{'ingredient_item_id': item.id, 'quantity_needed': qty} for item, qty in pairs]


@pytest.mark.usefixtures("app_context")
class TestCompositions:

    def test_set_compositions_marks_item_compound_in_order(self, make_item):
        dough = make_item(name='Masa de concha')
        flour = make_item(name='Harina')
        sugar = make_item(name='Azúcar')

        set_item_compositions(dough.id, _lines((sugar, 0.2), (flour, 0.6)))

        dough = db.session.get(InventoryItem, dough.id)
        assert dough.is_compound
        assert [line.ingredient_item_id for line in dough.compositions] == [sugar.id, flour.id]
        assert [line.position for line in dough.compositions] == [0, 1]

    def test_replacing_composition_drops_old_lines(self, make_item):
        dough = make_item()
        flour = make_item()
        butter = make_item()
        set_item_compositions(dough.id, _lines((flour, 0.6)))

        set_item_compositions(dough.id, _lines((butter, 0.3)))

        dough = db.session.get(InventoryItem, dough.id)
        assert [line.ingredient_item_id for line in dough.compositions] == [butter.id]

    def test_empty_composition_clears_compound_flag(self, make_item):
        dough = make_item()
        flour = make_item()
        set_item_compositions(dough.id, _lines((flour, 1)))

        set_item_compositions(dough.id, [])

        assert db.session.get(InventoryItem, dough.id).is_compound is False

    def test_self_reference_is_a_cycle(self, make_item):
        dough = make_item()

        with pytest.raises(CompositionCycleError):
            set_item_compositions(dough.id, _lines((dough, 1)))

    def test_indirect_cycle_is_rejected(self, make_item):
        filling = make_item(name='Relleno')
        cream = make_item(name='Crema')
        set_item_compositions(filling.id, _lines((cream, 0.5)))

        with pytest.raises(CompositionCycleError) as excinfo:
            set_item_compositions(cream.id, _lines((filling, 0.1)))

        assert excinfo.value.path == [cream.id, filling.id, cream.id]
        assert db.session.get(InventoryItem, cream.id).compositions == []

    def test_shared_ingredient_is_not_a_cycle(self, make_item):
        top = make_item()
        left = make_item()
        right = make_item()
        base = make_item()
        set_item_compositions(left.id, _lines((base, 1)))
        set_item_compositions(right.id, _lines((base, 1)))

        assert find_composition_cycle(top.id, [left.id, right.id]) is None

    def test_duplicate_ingredient_is_rejected(self, make_item):
        dough = make_item()
        flour = make_item()

        with pytest.raises(ValidationError):
            set_item_compositions(dough.id, _lines((flour, 1), (flour, 2)))

    def test_unknown_ingredient_is_rejected(self, make_item):
        dough = make_item()

        with pytest.raises(NotFoundError):
            set_item_compositions(dough.id, [{'ingredient_item_id': 4242, 'quantity_needed': 1}])


@pytest.mark.usefixtures("app_context")
class TestCompoundProduction:

    def test_production_consumes_ingredients_and_credits_compound(self, make_item):
        dough = make_item(unit_purchase='kg', unit_usage='g')
        flour = make_item(stock=10000)
        butter = make_item(stock=2000)
        set_item_compositions(dough.id, _lines((flour, 0.6), (butter, 0.25)))

        movements = produce_compound_stock(dough.id, 1000, created_by='panadero')

        assert [m.move_type for m in movements] == ['production_usage', 'production_usage', 'adjustment']
        assert db.session.get(InventoryItem, flour.id).current_stock == pytest.approx(9400)
        assert db.session.get(InventoryItem, butter.id).current_stock == pytest.approx(1750)
        assert db.session.get(InventoryItem, dough.id).current_stock == pytest.approx(1000)
        for item in (dough, flour, butter):
            assert validate_stock_ledger_sync(item.id)[0]

    def test_shortage_rolls_back_everything(self, make_item):
        dough = make_item()
        flour = make_item(stock=10000)
        butter = make_item(stock=100)
        set_item_compositions(dough.id, _lines((flour, 0.6), (butter, 0.25)))

        with pytest.raises(RejectedNegativeStock):
            produce_compound_stock(dough.id, 1000)

        assert db.session.get(InventoryItem, flour.id).current_stock == pytest.approx(10000)
        assert db.session.get(InventoryItem, dough.id).current_stock == 0
        assert StockMovement.query.filter_by(item_id=dough.id).count() == 0

    def test_item_without_composition_cannot_be_produced(self, make_item):
        plain = make_item()

        with pytest.raises(ValidationError):
            produce_compound_stock(plain.id, 5)

    @pytest.mark.parametrize("quantity", [0, -3, 'lots'])
    def test_quantity_must_be_positive(self, make_item, quantity):
        dough = make_item()

        with pytest.raises(ValidationError):
            produce_compound_stock(dough.id, quantity)
