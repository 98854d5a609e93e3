from flask import Blueprint

kiosk_bp = Blueprint('kiosk', __name__, url_prefix='/kiosk')

# Import routes to register them with the blueprint
from . import routes  # noqa: E402,F401
