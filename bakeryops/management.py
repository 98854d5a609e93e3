"""
Management commands for deployment and maintenance
"""
import click
from flask.cli import with_appcontext

from .extensions import db
from .services.inventory_adjustment import find_ledger_mismatches
from .services.inventory_service import seed_default_categories


@click.command('create-app')
@with_appcontext
def create_app_command():
    """Initialize database, create all model tables and seed categories"""
    try:
        print("🚀 Creating bakeryops application database...")

        # Import the models package - this triggers all model registrations
        from . import models

        for model_name in models.__all__:
            print(f"   ✓ {model_name}")

        print("🏗️  Creating database tables...")
        db.create_all()

        from sqlalchemy import inspect
        tables = inspect(db.engine).get_table_names()
        print(f"📊 Created {len(tables)} tables: {', '.join(sorted(tables))}")

        created = seed_default_categories()
        print(f"✅ {created} inventory categories seeded")
        print("✅ bakeryops application database created successfully!")
    except Exception as e:
        print(f'❌ Database creation failed: {str(e)}')
        db.session.rollback()
        raise


@click.command('seed-categories')
@with_appcontext
def seed_categories_command():
    """Seed the default inventory categories"""
    try:
        created = seed_default_categories()
        print(f'✅ {created} inventory categories seeded')
    except Exception as e:
        print(f'❌ Category seeding failed: {str(e)}')
        db.session.rollback()
        raise


@click.command('verify-stock')
@with_appcontext
def verify_stock_command():
    """Compare cached item stock against the movement ledger"""
    mismatches = find_ledger_mismatches()
    if not mismatches:
        print('✅ All inventory items match their stock ledger')
        return

    for row in mismatches:
        print(f"❌ {row['name']} (id {row['item_id']}): stock={row['cached']} ledger={row['ledger_total']}")
    raise click.ClickException(f"{len(mismatches)} items out of sync with the stock ledger")


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(create_app_command)
    app.cli.add_command(seed_categories_command)
    app.cli.add_command(verify_stock_command)
