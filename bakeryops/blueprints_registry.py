import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """Register all blueprints with the Flask app."""

    # Track successful registrations
    successful_registrations = []
    failed_registrations = []

    def safe_register_blueprint(import_path, blueprint_name, url_prefix=None, description=None):
        """Register a blueprint, recording the outcome for the startup summary"""
        try:
            module_path, bp_name = import_path.rsplit('.', 1)
            module = __import__(module_path, fromlist=[bp_name])
            blueprint = getattr(module, bp_name)

            if url_prefix:
                app.register_blueprint(blueprint, url_prefix=url_prefix)
            else:
                app.register_blueprint(blueprint)

            successful_registrations.append(description or blueprint_name)
            return True
        except (ImportError, AttributeError, ValueError) as e:
            failed_registrations.append(f"{description or blueprint_name}: {e}")
            return False

    safe_register_blueprint('bakeryops.blueprints.api.api_bp', 'api_bp', None, 'API')
    safe_register_blueprint('bakeryops.blueprints.inventory.inventory_bp', 'inventory_bp', None, 'Inventory')
    safe_register_blueprint('bakeryops.blueprints.products.products_bp', 'products_bp', None, 'Products')
    safe_register_blueprint('bakeryops.blueprints.commercial.commercial_bp', 'commercial_bp', None, 'Commercial')
    safe_register_blueprint('bakeryops.blueprints.planning.planning_bp', 'planning_bp', None, 'Planning')
    safe_register_blueprint('bakeryops.blueprints.kiosk.kiosk_bp', 'kiosk_bp', None, 'Kiosk')

    logger.info(f"Registered blueprints: {', '.join(successful_registrations)}")
    for failure in failed_registrations:
        logger.error(f"Blueprint registration failed - {failure}")

    if failed_registrations and (app.config.get('TESTING') or app.config.get('ENV') == 'production'):
        raise RuntimeError(f"Blueprint registration failed: {failed_registrations}")

    return successful_registrations
