import logging

from flask import request

from ...extensions import limiter
from ...models import StockMovement
from ...services import inventory_service
from ...services.inventory_adjustment import (
    apply_stock_movement,
    produce_compound_stock,
    validate_stock_ledger_sync,
)
from ...services.exceptions import ValidationError
from ...utils.api_responses import APIResponse
from ...utils.request_parsing import parse_bool, parse_int
from . import inventory_bp

logger = logging.getLogger(__name__)


def _item_payload(item):
    data = item.to_dict()
    data['stock_status'] = inventory_service.stock_status(item)
    return data


@inventory_bp.route('/items', methods=['GET'])
def list_items():
    items = inventory_service.list_inventory_items(
        category_id=parse_int(request.args.get('category_id'), 'category_id', required=False),
        search=request.args.get('q'),
        include_inactive=parse_bool(request.args.get('include_inactive')),
    )
    return APIResponse.success([_item_payload(item) for item in items])


@inventory_bp.route('/items', methods=['POST'])
def create_item():
    data = APIResponse.handle_request_content()
    item = inventory_service.create_inventory_item(data)
    return APIResponse.created(_item_payload(item), "Inventory item created")


@inventory_bp.route('/items/<int:item_id>', methods=['GET'])
def get_item(item_id):
    item = inventory_service.get_item(item_id)
    data = _item_payload(item)
    data['compositions'] = [line.to_dict() for line in item.compositions]
    return APIResponse.success(data)


@inventory_bp.route('/items/<int:item_id>', methods=['PUT', 'PATCH'])
def update_item(item_id):
    data = APIResponse.handle_request_content()
    item = inventory_service.update_inventory_item(item_id, data)
    return APIResponse.success(_item_payload(item), "Inventory item updated")


@inventory_bp.route('/items/<int:item_id>', methods=['DELETE'])
def delete_item(item_id):
    inventory_service.delete_inventory_item(item_id)
    return APIResponse.success(None, "Inventory item deleted")


@inventory_bp.route('/items/<int:item_id>/movements', methods=['GET'])
def list_movements(item_id):
    item = inventory_service.get_item(item_id)
    limit = parse_int(request.args.get('limit'), 'limit', required=False) or 100
    movements = (StockMovement.query.filter_by(item_id=item.id)
                 .order_by(StockMovement.id.desc()).limit(limit).all())
    return APIResponse.success([movement.to_dict() for movement in movements])


@inventory_bp.route('/items/<int:item_id>/movements', methods=['POST'])
@limiter.limit("120 per minute")
def create_movement(item_id):
    data = APIResponse.handle_request_content()
    if 'qty_change' not in data:
        raise ValidationError("qty_change is required", field='qty_change')
    movement = apply_stock_movement(
        item_id,
        data.get('qty_change'),
        data.get('move_type'),
        notes=data.get('notes'),
        created_by=data.get('created_by'),
    )
    return APIResponse.created(movement.to_dict(), "Stock movement recorded")


@inventory_bp.route('/items/<int:item_id>/ledger-check', methods=['GET'])
def ledger_check(item_id):
    inventory_service.get_item(item_id)
    is_valid, error, cached, derived = validate_stock_ledger_sync(item_id)
    return APIResponse.success({
        'item_id': item_id,
        'is_valid': is_valid,
        'error': error,
        'current_stock': cached,
        'ledger_stock': derived,
    })


@inventory_bp.route('/items/<int:item_id>/compositions', methods=['PUT'])
def set_compositions(item_id):
    data = APIResponse.handle_request_content()
    lines = data.get('lines')
    if not isinstance(lines, list):
        raise ValidationError("lines must be a list", field='lines')
    item = inventory_service.set_item_compositions(item_id, lines)
    return APIResponse.success([line.to_dict() for line in item.compositions], "Composition saved")


@inventory_bp.route('/items/<int:item_id>/produce', methods=['POST'])
def produce_item(item_id):
    data = APIResponse.handle_request_content()
    movements = produce_compound_stock(
        item_id,
        data.get('quantity'),
        notes=data.get('notes'),
        created_by=data.get('created_by'),
    )
    return APIResponse.created([movement.to_dict() for movement in movements], "Compound stock produced")


@inventory_bp.route('/low-stock', methods=['GET'])
def low_stock():
    return APIResponse.success([_item_payload(item) for item in inventory_service.list_low_stock_items()])


@inventory_bp.route('/categories', methods=['GET'])
def list_categories():
    return APIResponse.success([category.column_dict() for category in inventory_service.list_categories()])


@inventory_bp.route('/categories', methods=['POST'])
def create_category():
    data = APIResponse.handle_request_content()
    category = inventory_service.create_category(data.get('name'), data.get('color'), data.get('description'))
    return APIResponse.created(category.column_dict(), "Category created")
