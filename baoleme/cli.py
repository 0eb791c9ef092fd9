# baoleme/cli.py
import logging

import click

from .models import db, Merchant, Store, Product, User, Rider
from .services.admin_service import AdminService

logger = logging.getLogger(__name__)


def register_commands(app):

    @app.cli.command("create-admin")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(password):
        """Create an admin account and print its id."""
        admin = AdminService.create_admin(password)
        click.echo(f"admin id={admin.id}")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Insert a demo merchant, store, products, user and rider."""
        if Merchant.query.filter_by(username="demo_merchant").first() is not None:
            click.echo("demo data already present")
            return
        merchant = Merchant(username="demo_merchant", phone="13800000001")
        merchant.set_password("demo123456")
        db.session.add(merchant)
        db.session.flush()

        store = Store(
            merchant_id=merchant.id, name="Demo Noodle House", description="Hand-pulled noodles",
            location="Demo Street 1", type="noodles", distance=1.2, avg_price=25,
        )
        db.session.add(store)
        db.session.flush()
        for idx in range(1, 6):
            db.session.add(Product(
                store_id=store.id,
                name=f"Demo Noodles {idx}",
                description="Demo product",
                price=round(12 + idx * 2.5, 2),
                category="noodles",
                stock=(idx * 7) % 40 + 10,
            ))

        user = User(username="demo_user", phone="13800000002", location="Demo Avenue 9")
        user.set_password("demo123456")
        rider = Rider(username="demo_rider", phone="13800000003", order_status=-1, dispatch_mode=1, balance=0)
        rider.set_password("demo123456")
        db.session.add_all([user, rider])
        db.session.commit()
        logger.info("demo data seeded")
        click.echo("demo data created (password: demo123456)")
