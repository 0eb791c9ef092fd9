"""
HTTP forwarding to the downstream services configured in GATEWAY_SERVICES.
"""

import logging
import time
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

# hop-by-hop headers never cross the gateway
FILTERED_HEADERS = {
    "host", "connection", "content-length", "transfer-encoding", "upgrade",
    "proxy-connection", "proxy-authenticate", "proxy-authorization", "te", "trailers",
}
BODYLESS_METHODS = {"GET", "DELETE", "HEAD", "OPTIONS"}


class RouteNotFound(Exception):
    pass


class GatewayForwarder:
    """Forwards requests to `services[name] + path` over one requests.Session."""

    def __init__(self, services: Dict[str, str], timeout: float = 10, session: Optional[requests.Session] = None):
        self.services = dict(services or {})
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "Baoleme-Gateway/1.0"})

    @staticmethod
    def filter_headers(headers) -> Dict[str, str]:
        return {
            k: v for k, v in headers.items()
            if k.lower() not in FILTERED_HEADERS and not k.lower().startswith("proxy-")
        }

    def build_url(self, service: str, path: str, query_string: str = "") -> str:
        base = self.services.get(service)
        if base is None:
            raise RouteNotFound(service)
        url = f"{base}/{path.lstrip('/')}"
        if query_string:
            url = f"{url}?{query_string}"
        return url

    def forward(self, service: str, path: str, method: str, headers, body: bytes = b"",
                query_string: str = "") -> requests.Response:
        """Raises RouteNotFound for unknown services and requests.RequestException upstream."""
        url = self.build_url(service, path, query_string)
        method = method.upper()
        started = time.monotonic()
        logger.info("forwarding %s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                headers=self.filter_headers(headers),
                data=None if method in BODYLESS_METHODS else body,
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException:
            logger.exception("forward failed %s %s (%.0fms)", method, url, (time.monotonic() - started) * 1000)
            raise
        logger.info("forwarded %s %s -> %s (%.0fms)", method, url, resp.status_code,
                    (time.monotonic() - started) * 1000)
        return resp
