import logging
import os

import click
from dotenv import load_dotenv
from flask import Blueprint, Flask, current_app, jsonify, request
from flask_migrate import Migrate

load_dotenv()

from config import config
from models import db
from services.access_control import grant_access
from services.allocations import (
    create_allocation,
    dissolve_allocation,
    extend_horizon,
    update_allocation,
)
from services.errors import InvalidParameters, RegistryError
from services.ledger import TxContext, current_height, init_registry
from services.performance import (
    retrieve_performance_analytics,
    update_performance_metrics,
)
from services.reporting import (
    calculate_effective_allocation,
    evaluate_treasury_permissions,
    fetch_allocation_details,
    generate_treasury_overview,
    verify_treasury_manager,
)
from services.validators import MAX_HEIGHT, valid_height, valid_principal

logger = logging.getLogger(__name__)

migrate = Migrate()
api = Blueprint("api", __name__, url_prefix="/api")


class MissingPrincipal(Exception):
    pass


# ── Request helpers ──────────────────────────────────────────────────────

def _logical_time() -> int:
    """X-Logical-Time header, or the registry's latest time when absent."""
    raw = request.headers.get("X-Logical-Time")
    if raw is None or raw == "":
        return current_height()
    try:
        now = int(raw)
    except ValueError:
        raise InvalidParameters("X-Logical-Time must be an integer", {"value": raw})
    if not valid_height(now):
        raise InvalidParameters(
            f"X-Logical-Time must be within [0, {MAX_HEIGHT}]", {"value": now}
        )
    return now


def _caller() -> str:
    principal = request.headers.get("X-Principal", "").strip()
    if not principal:
        raise MissingPrincipal()
    if not valid_principal(principal):
        raise InvalidParameters("X-Principal must be 1-128 characters")
    return principal


def _context(anonymous=False) -> TxContext:
    caller = "" if anonymous else _caller()
    return TxContext(caller=caller, now=_logical_time())


def _body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidParameters("Request body must be a JSON object")
    return data


# ── Allocations ──────────────────────────────────────────────────────────

@api.route("/allocations", methods=["POST"])
def create():
    """Register a new allocation managed by the caller."""
    ctx = _context()
    data = _body()
    allocation_id = create_allocation(
        ctx,
        label=data.get("label"),
        percentage=data.get("percentage"),
        duration=data.get("duration"),
        thesis=data.get("thesis"),
        asset_classes=data.get("asset_classes"),
        initial_value=data.get("initial_value"),
    )
    return jsonify({"allocation_id": allocation_id}), 201


@api.route("/allocations/<int:allocation_id>", methods=["PUT"])
def update(allocation_id):
    ctx = _context()
    data = _body()
    update_allocation(
        ctx,
        allocation_id,
        label=data.get("label"),
        percentage=data.get("percentage"),
        thesis=data.get("thesis"),
        asset_classes=data.get("asset_classes"),
    )
    return jsonify({"ok": True})


@api.route("/allocations/<int:allocation_id>/extend", methods=["POST"])
def extend(allocation_id):
    """Extend the rebalancing window by additional_duration."""
    ctx = _context()
    data = _body()
    extend_horizon(ctx, allocation_id, data.get("additional_duration"))
    return jsonify({"ok": True})


@api.route("/allocations/<int:allocation_id>", methods=["DELETE"])
def dissolve(allocation_id):
    ctx = _context()
    dissolve_allocation(ctx, allocation_id)
    return jsonify({"ok": True})


@api.route("/allocations/<int:allocation_id>", methods=["GET"])
def details(allocation_id):
    ctx = _context()
    return jsonify(fetch_allocation_details(ctx, allocation_id))


@api.route("/allocations/<int:allocation_id>/effective")
def effective(allocation_id):
    """Public: allocation percentage while active, otherwise 0."""
    ctx = _context(anonymous=True)
    return jsonify({
        "allocation_id": allocation_id,
        "effective_percentage": calculate_effective_allocation(ctx, allocation_id),
    })


@api.route("/allocations/<int:allocation_id>/manager")
def manager(allocation_id):
    return jsonify({
        "allocation_id": allocation_id,
        "manager": verify_treasury_manager(allocation_id),
    })


# ── Performance ──────────────────────────────────────────────────────────

@api.route("/allocations/<int:allocation_id>/performance", methods=["PUT"])
def update_performance(allocation_id):
    ctx = _context()
    data = _body()
    update_performance_metrics(
        ctx,
        allocation_id,
        total_value=data.get("total_value"),
        performance_score=data.get("performance_score"),
        risk_score=data.get("risk_score"),
    )
    return jsonify({"ok": True})


@api.route("/allocations/<int:allocation_id>/performance", methods=["GET"])
def performance(allocation_id):
    ctx = _context()
    return jsonify(retrieve_performance_analytics(ctx, allocation_id))


# ── Access ───────────────────────────────────────────────────────────────

@api.route("/allocations/<int:allocation_id>/permissions")
def permissions(allocation_id):
    """Capability summary for ?principal=..."""
    principal = request.args.get("principal", "").strip()
    if not valid_principal(principal):
        raise InvalidParameters("Query parameter 'principal' is required")
    ctx = _context(anonymous=True)
    return jsonify(evaluate_treasury_permissions(ctx, allocation_id, principal))


@api.route("/allocations/<int:allocation_id>/grants/<principal>", methods=["PUT"])
def grant(allocation_id, principal):
    ctx = _context()
    data = _body()
    grant_access(ctx, allocation_id, principal, data.get("permission_level"))
    return jsonify({"ok": True})


# ── Overview ─────────────────────────────────────────────────────────────

@api.route("/overview")
def overview():
    ctx = _context(anonymous=True)
    return jsonify(generate_treasury_overview(ctx))


# ── Errors ───────────────────────────────────────────────────────────────

@api.errorhandler(RegistryError)
def handle_registry_error(e):
    return jsonify(e.to_dict()), e.status_code


@api.errorhandler(MissingPrincipal)
def handle_missing_principal(e):
    return jsonify({"error": "Unauthorized", "message": "X-Principal header is required"}), 401


# ── App factory ──────────────────────────────────────────────────────────

def create_app(config_name=None):
    config_name = config_name or os.environ.get("FLASK_ENV", "default")
    if config_name not in config:
        config_name = "default"

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    db.init_app(app)
    migrate.init_app(app, db)
    app.register_blueprint(api)

    @app.cli.command("init-db")
    def init_db_command():
        """Create tables and the registry state row."""
        db.create_all()
        state = init_registry(current_app.config["TREASURY_CONTROLLER"])
        click.echo(f"Registry ready (controller={state.controller})")

    if app.config["AUTO_CREATE_TABLES"]:
        with app.app_context():
            db.create_all()
            init_registry(app.config["TREASURY_CONTROLLER"])

    return app


# ── Run ──────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    create_app().run(debug=True, port=5002)
