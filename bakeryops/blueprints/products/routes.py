from flask import request

from ...services import product_service
from ...utils.api_responses import APIResponse
from ...utils.request_parsing import parse_bool
from . import products_bp


@products_bp.route('', methods=['GET'])
def list_products():
    products = product_service.list_products(
        search=request.args.get('q'),
        include_inactive=parse_bool(request.args.get('include_inactive')),
    )
    return APIResponse.success([product.to_dict() for product in products])


@products_bp.route('', methods=['POST'])
def create_product():
    product = product_service.create_product(APIResponse.handle_request_content())
    return APIResponse.created(product.to_dict(include_children=True), "Product created")


@products_bp.route('/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = product_service.get_product(product_id)
    return APIResponse.success(product.to_dict(include_children=True))


@products_bp.route('/<int:product_id>', methods=['PUT', 'PATCH'])
def update_product(product_id):
    product = product_service.update_product(product_id, APIResponse.handle_request_content())
    return APIResponse.success(product.to_dict(include_children=True), "Product updated")


@products_bp.route('/<int:product_id>/activate', methods=['POST'])
def activate_product(product_id):
    product = product_service.set_product_active(product_id, True)
    return APIResponse.success(product.to_dict(), "Product activated")


@products_bp.route('/<int:product_id>/deactivate', methods=['POST'])
def deactivate_product(product_id):
    product = product_service.set_product_active(product_id, False)
    return APIResponse.success(product.to_dict(), "Product deactivated")


@products_bp.route('/<int:product_id>/costing', methods=['GET'])
def product_costing(product_id):
    product = product_service.get_product(product_id)
    return APIResponse.success(product_service.product_costing(product))


@products_bp.route('/phases/<int:phase_id>/triggers', methods=['GET'])
def phase_triggers(phase_id):
    return APIResponse.success([trigger.to_dict() for trigger in product_service.phase_triggers(phase_id)])
