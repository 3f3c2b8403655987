"""Flask app serving the storefront catalog API."""

from typing import Optional

from flask import Flask, jsonify

from storefront.api import api
from storefront.config import DB_PATH, FLASK_DEBUG, FLASK_HOST, FLASK_PORT


def create_app(db_path: Optional[str] = None) -> Flask:
    """Create the Flask app.

    Args:
        db_path: SQLite database to serve (default: config.DB_PATH)
    """
    app = Flask(__name__)
    app.config["STOREFRONT_DB_PATH"] = db_path or DB_PATH
    app.json.ensure_ascii = False
    app.register_blueprint(api)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    from storefront.logging_config import setup_logging

    setup_logging()
    create_app().run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
