"""Clients, price lists and orders."""

from flask import request

from ...services import client_service, order_service, price_list_service
from ...services.exceptions import ValidationError
from ...services.state_machines import order_is_cancellable, order_is_deletable
from ...utils.api_responses import APIResponse
from ...utils.request_parsing import parse_bool, parse_date, parse_int
from . import commercial_bp


# Clients

@commercial_bp.route('/clients', methods=['GET'])
def list_clients():
    clients = client_service.list_clients(
        search=request.args.get('q'),
        include_inactive=parse_bool(request.args.get('include_inactive')),
    )
    return APIResponse.success([client.to_dict() for client in clients])


@commercial_bp.route('/clients', methods=['POST'])
def create_client():
    client = client_service.create_client(APIResponse.handle_request_content())
    return APIResponse.created(client.to_dict(), "Client created")


@commercial_bp.route('/clients/<int:client_id>', methods=['GET'])
def get_client(client_id):
    return APIResponse.success(client_service.get_client(client_id).to_dict())


@commercial_bp.route('/clients/<int:client_id>', methods=['PUT', 'PATCH'])
def update_client(client_id):
    client = client_service.update_client(client_id, APIResponse.handle_request_content())
    return APIResponse.success(client.to_dict(), "Client updated")


@commercial_bp.route('/clients/<int:client_id>/activate', methods=['POST'])
def activate_client(client_id):
    return APIResponse.success(client_service.set_client_active(client_id, True).to_dict(), "Client activated")


@commercial_bp.route('/clients/<int:client_id>/deactivate', methods=['POST'])
def deactivate_client(client_id):
    return APIResponse.success(client_service.set_client_active(client_id, False).to_dict(), "Client deactivated")


# Price lists

@commercial_bp.route('/price-lists', methods=['GET'])
def list_price_lists():
    price_lists = price_list_service.list_price_lists(
        include_inactive=parse_bool(request.args.get('include_inactive'), default=True),
    )
    return APIResponse.success([price_list.to_dict() for price_list in price_lists])


@commercial_bp.route('/price-lists', methods=['POST'])
def create_price_list():
    data = APIResponse.handle_request_content()
    price_list = price_list_service.create_price_list(data.get('name'), data.get('description'), data.get('items'))
    return APIResponse.created(price_list.to_dict(include_items=True), "Price list created")


@commercial_bp.route('/price-lists/<int:price_list_id>', methods=['GET'])
def get_price_list(price_list_id):
    price_list = price_list_service.get_price_list(price_list_id)
    data = price_list.to_dict(include_items=True)
    data['margins'] = price_list_service.price_list_margins(price_list)
    return APIResponse.success(data)


@commercial_bp.route('/price-lists/<int:price_list_id>/items', methods=['PUT'])
def replace_price_list_items(price_list_id):
    data = APIResponse.handle_request_content()
    items = data.get('items')
    if not isinstance(items, list):
        raise ValidationError("items must be a list", field='items')
    price_list = price_list_service.replace_price_list_items(price_list_id, items)
    return APIResponse.success(price_list.to_dict(include_items=True), "Price list updated")


@commercial_bp.route('/price-lists/<int:price_list_id>/toggle', methods=['POST'])
def toggle_price_list(price_list_id):
    price_list = price_list_service.toggle_price_list(price_list_id)
    return APIResponse.success(price_list.to_dict(), "Price list updated")


@commercial_bp.route('/price-lists/<int:price_list_id>', methods=['DELETE'])
def delete_price_list(price_list_id):
    price_list_service.delete_price_list(price_list_id)
    return APIResponse.success(None, "Price list deleted")


# Orders

@commercial_bp.route('/orders', methods=['GET'])
def list_orders():
    orders = order_service.list_orders(
        status=request.args.get('status'),
        delivery_date=parse_date(request.args.get('delivery_date'), 'delivery_date', required=False),
        client_id=parse_int(request.args.get('client_id'), 'client_id', required=False),
    )
    return APIResponse.success([order.to_dict(include_items=False) for order in orders])


@commercial_bp.route('/orders/pending', methods=['GET'])
def list_pending_orders():
    return APIResponse.success([order.to_dict() for order in order_service.list_pending_orders()])


@commercial_bp.route('/orders', methods=['POST'])
def create_order():
    data = APIResponse.handle_request_content()
    order = order_service.create_order(
        client_id=parse_int(data.get('client_id'), 'client_id'),
        delivery_date=parse_date(data.get('delivery_date'), 'delivery_date'),
        items=data.get('items') or [],
        notes=data.get('internal_notes'),
    )
    return APIResponse.created(order.to_dict(), "Order created")


@commercial_bp.route('/orders/<int:order_id>', methods=['GET'])
def get_order(order_id):
    order = order_service.get_order(order_id)
    data = order.to_dict()
    data['can_cancel'] = order_is_cancellable(order)
    data['can_delete'] = order_is_deletable(order)
    return APIResponse.success(data)


@commercial_bp.route('/orders/<int:order_id>', methods=['PUT', 'PATCH'])
def update_order(order_id):
    data = APIResponse.handle_request_content()
    order = order_service.update_order(
        order_id,
        items=data.get('items'),
        delivery_date=parse_date(data.get('delivery_date'), 'delivery_date', required=False),
        notes=data.get('internal_notes'),
    )
    return APIResponse.success(order.to_dict(), "Order updated")


@commercial_bp.route('/orders/<int:order_id>/status', methods=['POST'])
def update_order_status(order_id):
    data = APIResponse.handle_request_content()
    status = data.get('status')
    if not status:
        raise ValidationError("status is required", field='status')
    order = order_service.update_order_status(order_id, status)
    return APIResponse.success(order.to_dict(), f"Order moved to {order.status}")


@commercial_bp.route('/orders/<int:order_id>', methods=['DELETE'])
def delete_order(order_id):
    order_service.delete_order(order_id)
    return APIResponse.success(None, "Order deleted")
