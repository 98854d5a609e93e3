from flask import Blueprint

commercial_bp = Blueprint('commercial', __name__, url_prefix='/commercial')

# Import routes to register them with the blueprint
from . import routes  # noqa: E402,F401
