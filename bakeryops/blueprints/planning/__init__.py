from flask import Blueprint

planning_bp = Blueprint('planning', __name__, url_prefix='/planning')

# Import routes to register them with the blueprint
from . import routes  # noqa: E402,F401
