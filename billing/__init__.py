import atexit
import copy
import os
import uuid

from dotenv import load_dotenv
from flask import Flask, g, request
from flasgger import Swagger
from flask_cors import CORS
from flask_migrate import Migrate
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from prometheus_client import CollectorRegistry
from prometheus_flask_exporter import PrometheusMetrics

import extensions
from billing import metrics as app_metrics
from billing.api import register_api_v1
from billing.cache import TTLCache
from billing.cli import register_cli
from billing.config import get_config_class
from billing.errors import errors_bp
from billing.logging import configure_logging
from billing.telemetry import init_tracing
from billing.utils.locks import NamedLocks
from billing.version import API_PREFIX
from models import db

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")
EXPOSED_HEADERS = ("X-Request-ID", "traceparent")

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: rule.rule.startswith(f"{API_PREFIX}/"),
            "model_filter": lambda tag: True,
        }
    ],
    "swagger_ui": True,
    "specs_route": "/docs/",
}
SWAGGER_TEMPLATE = {
    "info": {"title": "Billing API", "version": "1.0.0"},
    "tags": [
        {"name": "Auth", "description": "Admin login and token refresh"},
        {"name": "Items", "description": "Catalog items and their lifecycle"},
        {"name": "Bills", "description": "Customer bills"},
    ],
}


def create_app(config_object=None, test_config=None):
    """Application factory.

    ``test_config`` is applied on top of the config object before any
    extension is initialised, so it can change the database URI.
    """
    load_dotenv()
    app = Flask(__name__)
    app.config.from_object(config_object if config_object is not None else get_config_class())
    if test_config:
        app.config.update(test_config)

    configure_logging(app)
    register_cli(app)
    _init_web_extensions(app)
    _register_blueprints(app)
    _register_request_hooks(app)
    app.extensions["item_cache"] = TTLCache(
        default_ttl=app.config["ITEM_CACHE_TTL_SEC"], maxsize=app.config["ITEM_CACHE_MAXSIZE"]
    )
    app.extensions["named_locks"] = NamedLocks()

    db.init_app(app)
    app_metrics.init_app(app)
    init_tracing(app)
    if app.config.get("DEBUG") or app.config.get("TESTING"):
        with app.app_context():
            db.create_all()
            app.logger.info("Tables created")

    if app.config.get("CLEANUP_SWEEPER_ENABLED"):
        _start_cleanup_sweeper(app)

    @app.route("/health")
    def health():
        return {"status": "ok"}, 200

    return app


def _cors_origins(allowed):
    if not isinstance(allowed, str):
        return allowed or "*"
    allowed = allowed.strip()
    if allowed == "*":
        return "*"
    return [o.strip() for o in allowed.split(",") if o.strip()]


def _init_web_extensions(app):
    extensions.limiter.init_app(app)
    app.limiter = extensions.limiter

    Migrate(app, db, directory=MIGRATIONS_DIR, compare_type=True, render_as_batch=True)
    Swagger(app, config=copy.deepcopy(SWAGGER_CONFIG), template=copy.deepcopy(SWAGGER_TEMPLATE))

    # The default registry rejects duplicate metric names, and tests build
    # many apps per process.
    registry = CollectorRegistry(auto_describe=True) if app.config.get("TESTING") else None
    metrics = PrometheusMetrics(app, path="/metrics", registry=registry)
    if not app.config.get("TESTING") and not os.environ.get("METRICS_APP_INFO_SET"):
        metrics.info("app_info", "Application info", version="1.0.0")
        os.environ["METRICS_APP_INFO_SET"] = "1"

    CORS(
        app,
        origins=_cors_origins(app.config.get("CORS_ALLOWED_ORIGINS", "*")),
        supports_credentials=True,
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        expose_headers=list(EXPOSED_HEADERS),
    )


def _register_blueprints(app):
    app.register_blueprint(errors_bp)
    if app.config.get("TESTING"):
        from billing.test_support import test_support_bp
        app.register_blueprint(test_support_bp)
        app.register_blueprint(test_support_bp, url_prefix=f"{API_PREFIX}/test_support", name="test_support_bp_v1")
    register_api_v1(app)


def _register_request_hooks(app):
    @app.before_request
    def _set_request_id():
        g.request_id = (request.headers.get("X-Request-ID") or uuid.uuid4().hex)[:100]
        app.logger.info(f"request start {request.method} {request.path}")

    @app.after_request
    def _decorate_response(resp):
        rid = getattr(g, "request_id", None)
        if rid:
            resp.headers["X-Request-ID"] = rid

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        exposed = [h.strip() for h in resp.headers.get("Access-Control-Expose-Headers", "").split(",") if h.strip()]
        exposed += [h for h in EXPOSED_HEADERS if h not in exposed]
        resp.headers["Access-Control-Expose-Headers"] = ",".join(exposed)

        carrier = {}
        TraceContextTextMapPropagator().inject(carrier)
        if carrier.get("traceparent"):
            resp.headers["traceparent"] = carrier["traceparent"]
        return resp


def _start_cleanup_sweeper(app):
    from billing.tasks.cleanup import CleanupSweeper

    sweeper = CleanupSweeper(app).start()
    app.extensions["cleanup_sweeper"] = sweeper
    atexit.register(sweeper.stop)
