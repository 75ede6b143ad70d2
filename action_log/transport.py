"""HTTP transport for the log server — one request per call, no retries."""

import logging
from urllib.parse import quote

import requests

from action_log.errors import TransportError
from action_log.models import ensure_timestamp

logger = logging.getLogger(__name__)


class LogTransport:
    """Thin client over the server's ``/api/logs`` endpoints.

    Every method returns the parsed JSON body or raises TransportError
    carrying the HTTP status and the server's error message.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, session=None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def send_log(self, entry, stream_name: str, mode: str = "overwrite") -> dict:
        """Deliver a single entry."""
        return self._save(ensure_timestamp(entry), stream_name, mode)

    def send_batch(self, entries: list, stream_name: str, mode: str = "append") -> dict:
        """Deliver several entries as one JSON array in a single request."""
        payload = [ensure_timestamp(entry) for entry in entries]
        return self._save(payload, stream_name, mode)

    def _save(self, log_data, stream_name: str, mode: str) -> dict:
        body = {"logData": log_data, "fileName": stream_name, "mode": mode}
        return self._request("POST", "/api/logs/save", json=body)

    # ------------------------------------------------------------------
    # File management
    # ------------------------------------------------------------------

    def get_logs(self) -> list:
        return self._request("GET", "/api/logs")

    def list_files(self) -> dict:
        return self._request("GET", "/api/logs/list")

    def get_file(self, file_name: str):
        return self._request("GET", f"/api/logs/{quote(file_name, safe='')}")

    def delete_file(self, file_name: str) -> dict:
        return self._request("DELETE", f"/api/logs/{quote(file_name, safe='')}")

    def cleanup(self) -> dict:
        return self._request("POST", "/api/logs/cleanup")

    def upload(self, logs) -> dict:
        return self._request("POST", "/api/logs/upload", json={"logsData": logs})

    def close(self):
        self._session.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs):
        url = self._base_url + path
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Request to {url} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            message = body.get("error") if isinstance(body, dict) else None
            details = body.get("details") if isinstance(body, dict) else None
            raise TransportError(
                message or response.reason or "Request failed",
                status=response.status_code,
                details=details,
            )
        if body is None:
            raise TransportError("Response body is not JSON", status=response.status_code)
        return body
