import logging

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from config import get_config
from extensions import db, migrate
from models import init_models


def create_app(config_name=None):
    """Application factory for NapLog."""
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    logging.basicConfig(level=app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    init_models()
    db.init_app(app)
    migrate.init_app(app, db)

    # Proxy fix for production behind reverse proxies
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    from blueprints.sleep.routes import sleep_bp

    app.register_blueprint(sleep_bp, url_prefix="/sleep")

    @app.route("/health")
    def health():
        return {"status": "ok", "app": "NapLog"}

    return app


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=5000)
