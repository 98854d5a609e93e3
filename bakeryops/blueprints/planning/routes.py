from flask import request

from ...services import order_service, production_planning
from ...services.exceptions import ValidationError
from ...utils.api_responses import APIResponse
from ...utils.request_parsing import parse_date
from . import planning_bp


@planning_bp.route('/days', methods=['GET'])
def list_days():
    days = production_planning.list_production_days(status=request.args.get('status'))
    return APIResponse.success([day.to_dict() for day in days])


@planning_bp.route('/days', methods=['POST'])
def create_day():
    data = APIResponse.handle_request_content()
    day = production_planning.create_production_day(
        parse_date(data.get('production_date'), 'production_date'),
        parse_date(data.get('delivery_date'), 'delivery_date', required=False),
        notes=data.get('notes'),
    )
    return APIResponse.created(day.to_dict(), "Production day created")


@planning_bp.route('/days/<int:day_id>', methods=['GET'])
def get_day(day_id):
    day = production_planning.get_production_day(day_id)
    data = day.to_dict(include_batches=True)
    data['orders'] = [order.to_dict(include_items=False) for order in day.orders]
    return APIResponse.success(data)


@planning_bp.route('/days/<int:day_id>/orders', methods=['POST'])
def assign_orders(day_id):
    data = APIResponse.handle_request_content()
    order_ids = data.get('order_ids')
    if not isinstance(order_ids, list) or not order_ids:
        raise ValidationError("order_ids must be a non-empty list", field='order_ids')
    orders = order_service.assign_orders_to_production_day(order_ids, day_id)
    return APIResponse.success([order.to_dict(include_items=False) for order in orders], "Orders assigned")


@planning_bp.route('/days/<int:day_id>/batches/preview', methods=['GET'])
def preview_batches(day_id):
    plans = production_planning.preview_day_batches(day_id)
    return APIResponse.success([plan.to_dict() for plan in plans])


@planning_bp.route('/days/<int:day_id>/batches', methods=['POST'])
def calculate_batches(day_id):
    batches = production_planning.calculate_and_create_batches(day_id)
    return APIResponse.created([batch.to_dict() for batch in batches], f"{len(batches)} batches created")


@planning_bp.route('/days/<int:day_id>/ingredients', methods=['GET'])
def day_ingredients(day_id):
    result = production_planning.consolidate_day_ingredients(day_id)
    return APIResponse.success(result.to_dict())


@planning_bp.route('/days/<int:day_id>/publish', methods=['POST'])
def publish_day(day_id):
    day = production_planning.publish_production_day(day_id)
    return APIResponse.success(day.to_dict(), "Production day published")


@planning_bp.route('/days/<int:day_id>/close', methods=['POST'])
def close_day(day_id):
    day = production_planning.close_production_day(day_id)
    return APIResponse.success(day.to_dict(), "Production day closed")
