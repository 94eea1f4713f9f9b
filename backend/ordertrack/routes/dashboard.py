# Overview: Flask API routes for dashboard counters.

from flask import Blueprint, g, jsonify

from ..decorators import require_auth
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    """Counts and outstanding balance for the caller's data only."""
    return jsonify(dashboard_service.get_stats(g.user_id))
