"""Flask application factory."""

from flask import Flask

from ..config import Config
from ..grouping.service import GroupingService
from ..main import IngestionPipeline


def create_app(
    config_path: str = "config.yaml", pipeline: IngestionPipeline | None = None
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Load config and build the pipeline unless one is supplied
    if pipeline is None:
        cfg = Config.from_yaml(config_path)
        pipeline = IngestionPipeline(cfg)

    app.config["APP_CONFIG"] = pipeline.config
    app.config["PIPELINE"] = pipeline
    app.config["GROUPING"] = GroupingService(pipeline.db, pipeline.classifier)

    # Register routes
    from . import routes

    app.register_blueprint(routes.bp, url_prefix="/api")

    return app
