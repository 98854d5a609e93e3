"""Recipe, variant and per-unit costing."""

from __future__ import annotations

import pytest

from bakeryops.extensions import db
from bakeryops.models import ProductVariant, VariantIngredient
from bakeryops.services import costing_engine
from bakeryops.services.costing_engine import IngredientLine, line_cost, recipe_cost
from bakeryops.services.exceptions import IncompatibleUnitsError


def _flour_by_kg(quantity, unit):
    return IngredientLine(quantity=quantity, unit=unit, cost_per_purchase_unit=20.0,
                          purchase_unit='kg', usage_unit='g')


def test_same_quantity_costs_the_same_in_any_unit():
    in_grams = IngredientLine(quantity=500, unit='g', cost_per_purchase_unit=20.0,
                              purchase_unit='kg', quantity_per_purchase_unit=1000, usage_unit='g')
    in_kilos = IngredientLine(quantity=0.5, unit='kg', cost_per_purchase_unit=20.0,
                              purchase_unit='kg', quantity_per_purchase_unit=1000, usage_unit='g')

    assert line_cost(in_grams) == pytest.approx(10.0)
    assert line_cost(in_kilos) == pytest.approx(10.0)


def test_line_in_purchase_unit_is_not_divided_by_pack_size():
    # a box of 30 eggs, used by the piece
    whole_boxes = IngredientLine(quantity=2, unit='caja', cost_per_purchase_unit=90.0,
                                 purchase_unit='caja', quantity_per_purchase_unit=30, usage_unit='pz')
    single_eggs = IngredientLine(quantity=6, unit='pz', cost_per_purchase_unit=90.0,
                                 purchase_unit='caja', quantity_per_purchase_unit=30, usage_unit='pz')

    assert line_cost(whole_boxes) == pytest.approx(180.0)
    assert line_cost(single_eggs) == pytest.approx(18.0)


def test_stored_pack_size_is_ignored_for_convertible_units():
    stale = IngredientLine(quantity=250, unit='g', cost_per_purchase_unit=20.0,
                           purchase_unit='kg', quantity_per_purchase_unit=1, usage_unit='g')
    assert line_cost(stale) == pytest.approx(5.0)
    assert costing_engine.usage_units_per_purchase_unit('kg', 'g', 1) == pytest.approx(1000.0)
    assert costing_engine.usage_units_per_purchase_unit('bulto', 'g', 44000) == pytest.approx(44000.0)


def test_non_positive_pack_size_is_treated_as_one():
    line = IngredientLine(quantity=3, unit='pz', cost_per_purchase_unit=4.0,
                          purchase_unit='caja', quantity_per_purchase_unit=0, usage_unit='pz')
    assert line_cost(line) == pytest.approx(12.0)


def test_line_converts_into_purchase_unit():
    assert line_cost(_flour_by_kg(250, 'g')) == pytest.approx(5.0)
    assert line_cost(_flour_by_kg(0.5, 'kg')) == pytest.approx(10.0)


def test_line_in_usage_unit_of_a_package_uses_pack_size():
    # 44 kg sack bought as a "bulto", measured in grams
    sack = IngredientLine(quantity=440, unit='g', cost_per_purchase_unit=880.0, purchase_unit='bulto',
                          quantity_per_purchase_unit=44000, usage_unit='g')
    assert line_cost(sack) == pytest.approx(8.8)

    in_kg = IngredientLine(quantity=0.44, unit='kg', cost_per_purchase_unit=880.0, purchase_unit='bulto',
                           quantity_per_purchase_unit=44000, usage_unit='g')
    assert line_cost(in_kg) == pytest.approx(8.8)


def test_unconvertible_line_raises():
    with pytest.raises(IncompatibleUnitsError):
        line_cost(_flour_by_kg(1, 'ml'))


def test_recipe_cost_skips_unconvertible_lines(caplog):
    lines = [
        _flour_by_kg(250, 'g'),
        _flour_by_kg(1, 'L'),
        IngredientLine(quantity=2, unit='pz', cost_per_purchase_unit=3.0, purchase_unit='pz'),
    ]
    with caplog.at_level('WARNING', logger='bakeryops.services.costing_engine'):
        assert recipe_cost(lines) == pytest.approx(11.0)
    assert 'Skipping unconvertible recipe line' in caplog.text


def test_recipe_cost_of_empty_recipe_is_zero():
    assert recipe_cost([]) == 0.0


def test_variant_cost_adds_extra_ingredients():
    extra = [IngredientLine(quantity=20, unit='g', cost_per_purchase_unit=150.0,
                            purchase_unit='kg', usage_unit='g')]
    assert costing_engine.variant_cost(10.0, extra) == pytest.approx(13.0)
    assert costing_engine.variant_cost(10.0, []) == pytest.approx(10.0)


def test_cost_per_product_unit_guards_batch_size():
    assert costing_engine.cost_per_product_unit(100.0, 20) == pytest.approx(5.0)
    assert costing_engine.cost_per_product_unit(100.0, 0) == pytest.approx(100.0)
    assert costing_engine.cost_per_product_unit(100.0, -4) == pytest.approx(100.0)


def test_margin_is_markup_over_cost():
    assert costing_engine.margin(15.0, 10.0) == pytest.approx(50.0)
    assert costing_engine.margin(8.0, 10.0) == pytest.approx(-20.0)
    assert costing_engine.margin(15.0, 0) == 0.0


def test_costing_is_idempotent():
    lines = [_flour_by_kg(125, 'g'), _flour_by_kg(0.1, 'kg')]
    assert recipe_cost(lines) == recipe_cost(lines)


def test_breakdown_scales_unit_recipe_to_batch():
    lines = [_flour_by_kg(100, 'g'), _flour_by_kg(1, 'L')]
    result = costing_engine.breakdown(lines, batch_size_units=20)

    assert result.unit_recipe_cost == pytest.approx(2.0)
    assert result.batch_total_cost == pytest.approx(40.0)
    assert result.cost_per_unit == pytest.approx(2.0)
    assert len(result.skipped_lines) == 1
    assert result.to_dict()['batch_size_units'] == 20


def test_product_cost_breakdown_reads_persisted_recipe(make_item, make_product):
    flour = make_item(unit_purchase='kg', unit_usage='g', cost=20.0)
    butter = make_item(unit_purchase='kg', unit_usage='g', cost=180.0)
    product = make_product([(flour, 60, 'g'), (butter, 20, 'g')], batch_size=24)

    result = costing_engine.product_cost_breakdown(product)

    assert result.unit_recipe_cost == pytest.approx(1.2 + 3.6)
    assert result.batch_total_cost == pytest.approx(4.8 * 24)
    assert result.cost_per_unit == pytest.approx(4.8)


def test_variant_extra_cost_is_derived(make_item, make_product):
    chocolate = make_item(unit_purchase='kg', unit_usage='g', cost=250.0)
    product = make_product([], batch_size=10)
    variant = ProductVariant(name='Chocolate', product_id=product.id)
    variant.extra_ingredients.append(VariantIngredient(inventory_item_id=chocolate.id, quantity=12, unit='g'))
    db.session.add(variant)
    db.session.commit()

    assert variant.extra_cost == pytest.approx(3.0)

    chocolate.cost_per_purchase_unit = 500.0
    db.session.commit()
    assert variant.extra_cost == pytest.approx(6.0)
