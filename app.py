"""Flask application factory for the ward complaint portal."""
import json
import os
from typing import Optional

import click
from flask import Flask, flash, render_template, request
from sqlalchemy import create_engine, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import OperationalError
from dotenv import load_dotenv
from utils.logger import init_logging
from utils.security import apply_security_headers
from utils.i18n import inject_i18n, translate
from utils.complaint_store import ComplaintStore
from extensions import csrf, db, migrate

WARD_FIELDS = (
    "ward_number",
    "ward_name_en",
    "ward_name_hi",
    "ward_name_kn",
    "councillor_name",
    "councillor_party",
    "councillor_phone",
    "city",
)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(404)
    def not_found_error(error):
        app.logger.warning("404 Not Found", extra={"path": request.path, "method": request.method})
        return render_template("errors/404.html"), 404

    @app.errorhandler(413)
    def request_too_large(error):
        app.logger.warning(
            "413 Request Entity Too Large",
            extra={"path": request.path, "content_length": request.content_length},
        )
        flash(translate("error_message"), "danger")
        return render_template("errors/413.html"), 413

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.exception("500 Internal Server Error")
        return render_template("errors/500.html"), 500


def ensure_reference_data(app: Flask) -> None:
    """Ensure the built-in problem categories exist so the complaint form is usable on first run."""
    from models import ProblemCategory  # Local import to avoid circular dependency

    added = ProblemCategory.ensure_defaults()
    if added:
        app.logger.info("Default problem categories created", extra={"count": added})


def load_wards(records: list) -> tuple[int, int]:
    """Upsert wards keyed by ward number; returns (created, updated)."""
    from models import Ward  # Local import to avoid circular dependency

    created = updated = 0
    for record in records:
        missing = [field for field in WARD_FIELDS if not record.get(field)]
        if missing:
            raise ValueError(f"Ward record missing fields: {', '.join(missing)}")
        values = {field: str(record[field]).strip() for field in WARD_FIELDS}
        ward = Ward.query.filter_by(ward_number=values["ward_number"]).first()
        if ward:
            for field, value in values.items():
                setattr(ward, field, value)
            updated += 1
        else:
            db.session.add(Ward(**values))
            created += 1
    db.session.commit()
    return created, updated


def ensure_database_exists(database_uri: str) -> None:
    """Create the target database if it does not exist (PostgreSQL + SQLite support)."""
    url = make_url(database_uri)

    if url.drivername.startswith("sqlite"):
        # For SQLite just make sure the parent directory exists.
        if url.database and url.database != ":memory:":
            os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)
        return

    if url.drivername.startswith("postgres"):
        db_name = url.database
        admin_url = url.set(database=os.getenv("POSTGRES_DB_ADMIN", "postgres"))
        engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")
        try:
            with engine.connect() as conn:
                exists = conn.execute(
                    text("SELECT 1 FROM pg_database WHERE datname = :name"), {"name": db_name}
                ).scalar()
                if not exists:
                    conn.execute(text(f'CREATE DATABASE "{db_name}"'))
        except OperationalError:
            # If we cannot connect/create, let the normal app startup fail loudly later.
            pass
        finally:
            engine.dispose()


def create_app(config_name: Optional[str] = None) -> Flask:
    """Application factory with environment-aware configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    # Resolve configuration
    from config import DevelopmentConfig, ProductionConfig, TestingConfig

    config_key = (config_name or os.getenv("FLASK_CONFIG") or os.getenv("FLASK_ENV") or "production").lower()
    config_map = {
        "development": DevelopmentConfig,
        "dev": DevelopmentConfig,
        "production": ProductionConfig,
        "prod": ProductionConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = config_map.get(config_key, ProductionConfig)
    app.config.from_object(config_class())

    ensure_database_exists(app.config["SQLALCHEMY_DATABASE_URI"])

    # Optional instance-specific overrides
    app.config.from_pyfile("config.py", silent=True)
    os.makedirs(app.instance_path, exist_ok=True)
    os.makedirs(app.config.get("COMPLAINT_UPLOAD_FOLDER", os.path.join(app.instance_path, "complaint_uploads")), exist_ok=True)

    # Initialize logging early
    logger = init_logging(app)
    app.logger = logger

    # Initialize extensions
    csrf.init_app(app)
    db.init_app(app)
    migrate.init_app(app, db)
    app.extensions["complaint_store"] = ComplaintStore.from_config(app.config)

    # Blueprints
    from routes import main_bp, complaints_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(complaints_bp)

    @app.cli.command("load-wards")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    def load_wards_command(path):
        """Create or update wards from a JSON list of ward records."""
        with open(path, "r", encoding="utf-8") as handle:
            records = json.load(handle)
        if not isinstance(records, list):
            raise click.ClickException("Ward file must contain a JSON list")
        try:
            created, updated = load_wards(records)
        except ValueError as exc:
            db.session.rollback()
            raise click.ClickException(str(exc)) from exc
        app.logger.info("Wards loaded", extra={"wards_created": created, "wards_updated": updated, "source": path})
        click.echo(f"Wards created: {created}, updated: {updated}")

    # Error handlers
    register_error_handlers(app)

    # i18n and context globals
    inject_i18n(app)

    @app.after_request
    def _after_request(response):
        return apply_security_headers(response, force_https=app.config.get("PREFERRED_URL_SCHEME") == "https")

    # Ensure tables exist so first run creates the database structure automatically.
    with app.app_context():
        db.create_all()
        ensure_reference_data(app)

    return app


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, use_reloader=False)
