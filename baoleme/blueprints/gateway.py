# baoleme/blueprints/gateway.py
import logging

import requests
from flask import Blueprint, Response, current_app, jsonify, request

from ..services.gateway_service import GatewayForwarder, RouteNotFound

logger = logging.getLogger(__name__)

bp = Blueprint("gateway", __name__)

FORWARD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def _forwarder() -> GatewayForwarder:
    forwarder = current_app.extensions.get("gateway_forwarder")
    if forwarder is None:
        forwarder = GatewayForwarder(
            current_app.config["GATEWAY_SERVICES"], timeout=current_app.config["GATEWAY_TIMEOUT"]
        )
        current_app.extensions["gateway_forwarder"] = forwarder
    return forwarder


@bp.get("/_health")
def gateway_health():
    return jsonify({"status": "UP", "services": sorted(_forwarder().services)}), 200


@bp.route("/<service>/", defaults={"path": ""}, methods=FORWARD_METHODS)
@bp.route("/<service>/<path:path>", methods=FORWARD_METHODS)
def forward(service, path):
    try:
        upstream = _forwarder().forward(
            service,
            path,
            request.method,
            request.headers,
            body=request.get_data(),
            query_string=request.query_string.decode("utf-8"),
        )
    except RouteNotFound:
        logger.warning("no gateway route for %s", request.path)
        return jsonify({"error": "未找到匹配的路由规则", "path": request.path}), 404
    except requests.RequestException as exc:
        return jsonify({"error": "请求转发失败", "message": str(exc)}), 502

    headers = GatewayForwarder.filter_headers(upstream.headers)
    # requests already decoded the body
    headers.pop("Content-Encoding", None)
    headers.pop("content-encoding", None)
    return Response(upstream.content, status=upstream.status_code, headers=headers)
