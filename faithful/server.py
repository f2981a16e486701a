import logging
import os

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from .routes.scripture_api import scripture_bp

load_dotenv()


def create_app(config: dict = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "change-me")
    if config:
        app.config.update(config)

    CORS(app, supports_credentials=True)

    # Register blueprints
    app.register_blueprint(scripture_bp)

    return app


def main():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    app.run(host="127.0.0.1", port=int(os.getenv("PORT", "5055")))


if __name__ == "__main__":
    main()
