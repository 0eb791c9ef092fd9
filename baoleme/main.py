# baoleme/main.py
import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS

from .cli import register_commands
from .common.errors import register_error_handlers
from .common.log import configure_logging
from .config import Config
from .models import db
from .utils.debug_routes import register_debug_routes

from .blueprints.admin import bp as admin_bp
from .blueprints.cart import bp as cart_bp
from .blueprints.gateway import bp as gateway_bp
from .blueprints.image import bp as image_bp, uploads_bp
from .blueprints.merchant import bp as merchant_bp
from .blueprints.merchant_tools import coupon_bp, reviews_bp, stats_bp
from .blueprints.message import bp as message_bp
from .blueprints.orders import bp as orders_bp
from .blueprints.product import bp as product_bp
from .blueprints.rider import bp as rider_bp
from .blueprints.store import bp as store_bp
from .blueprints.user import bp as user_bp

logger = logging.getLogger(__name__)


def create_app(config_overrides=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app.config["LOG_LEVEL"])

    # CORS only on /api/*
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    # Database
    db.init_app(app)
    with app.app_context():
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        if uri.startswith("sqlite:///") and uri != "sqlite:///:memory:":
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or ".", exist_ok=True)
        db.create_all()

    register_error_handlers(app)
    register_commands(app)

    @app.get("/api/health")
    def health():
        return jsonify({"status": "healthy", "service": "Baoleme Backend"}), 200

    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(merchant_bp, url_prefix="/api/merchant")
    app.register_blueprint(rider_bp, url_prefix="/api/rider")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(store_bp, url_prefix="/api/store")
    app.register_blueprint(product_bp, url_prefix="/api/product")
    app.register_blueprint(orders_bp, url_prefix="/api/orders")
    app.register_blueprint(cart_bp, url_prefix="/api/cart")
    app.register_blueprint(coupon_bp, url_prefix="/api/coupon")
    app.register_blueprint(reviews_bp, url_prefix="/api/store/reviews")
    app.register_blueprint(stats_bp, url_prefix="/api/stats-store")
    app.register_blueprint(message_bp, url_prefix="/api/message")
    app.register_blueprint(image_bp, url_prefix="/api/image")
    app.register_blueprint(uploads_bp, url_prefix="/api/uploads")
    app.register_blueprint(gateway_bp, url_prefix="/api/gateway")

    register_debug_routes(app)

    logger.info("app created (db=%s)", app.config["SQLALCHEMY_DATABASE_URI"].split(":", 1)[0])
    return app
