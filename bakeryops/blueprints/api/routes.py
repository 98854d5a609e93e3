import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

from ...services.exceptions import ValidationError
from ...services.unit_conversion import ConversionEngine
from ...utils.api_responses import APIResponse
from ...utils.timezone_utils import TimezoneUtils

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')


@api_bp.route('/', methods=['GET', 'HEAD'])
def health_check():
    """Health check endpoint for monitoring services"""
    if request.method == 'HEAD':
        return '', 200
    return jsonify({'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()})


@api_bp.route('/server-time')
def server_time():
    """Current time and production date in the bakery timezone"""
    bakery_time = TimezoneUtils.now()
    return jsonify({
        'current_time': bakery_time.isoformat(),
        'bakery_date': bakery_time.date().isoformat(),
        'timezone': str(TimezoneUtils.get_bakery_timezone()),
    })


@api_bp.route('/units')
def list_units():
    return APIResponse.success(ConversionEngine.unit_catalog())


@api_bp.route('/convert')
def convert_quantity():
    """Convert ``quantity`` from ``from`` to ``to``, e.g. /api/convert?quantity=250&from=g&to=kg"""
    try:
        quantity = float(request.args.get('quantity', ''))
    except ValueError:
        raise ValidationError("quantity must be a number", field='quantity')
    from_unit = request.args.get('from')
    to_unit = request.args.get('to')
    converted = ConversionEngine.convert(quantity, from_unit, to_unit)
    return APIResponse.success({
        'quantity': quantity,
        'from_unit': from_unit,
        'to_unit': to_unit,
        'result': converted,
        'formatted': ConversionEngine.format_quantity(converted, to_unit),
    })
