"""
FLASK APP MAIN ENTRY POINT - EVOLVING STRING API SERVER

Sets up the Flask app, enables CORS and registers the evolving string routes.

Configuration (environment):
- EVOLVING_HOST  (default 127.0.0.1)
- EVOLVING_PORT  (default 5000)
- EVOLVING_DEBUG (default off; "1", "true", "yes", "on" enable it)
"""
import logging
import os

from flask import Flask
from flask_cors import CORS

from evolvingstring_web.routes import evolving_bp

_BOOL_TRUE = {"1", "true", "yes", "on"}


def create_app() -> Flask:
    app = Flask(__name__)
    # Browser frontends on another origin may call the API
    CORS(app)
    app.register_blueprint(evolving_bp)
    app.logger.setLevel(logging.INFO)
    return app


app = create_app()


def main():
    host = os.environ.get("EVOLVING_HOST", "127.0.0.1")
    port = int(os.environ.get("EVOLVING_PORT", "5000"))
    debug = os.environ.get("EVOLVING_DEBUG", "").strip().lower() in _BOOL_TRUE
    app.logger.info("Serving evolving string API on %s:%d", host, port)
    app.run(debug=debug, host=host, port=port)


if __name__ == '__main__':
    main()
