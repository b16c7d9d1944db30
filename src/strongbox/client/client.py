"""HTTP client for the Strongbox REST API.

Thin wrapper over httpx. Every method returns the decoded JSON body; any
non-2xx answer raises ClientError carrying the status code and the
server's "detail" message.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "http://localhost:8080"
REQUEST_TIMEOUT_SEC = 30
USER_AGENT = "Strongbox-Client/0.1"


class ClientError(Exception):
    """Non-2xx response or transport failure."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class StrongboxClient:
    """Synchronous API client.

    Args:
        base_url: Server root, e.g. http://localhost:8080
        token: Bearer token for the record endpoints
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER,
        token: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT_SEC,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, json: Any = None, auth: bool = True) -> httpx.Response:
        headers = {}
        if auth:
            if not self.token:
                raise ClientError(401, "Not logged in")
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            resp = self._http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Request %s %s failed: %s", method, path, exc)
            raise ClientError(0, f"Connection failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ClientError(resp.status_code, _error_message(resp))
        return resp

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        """Create an account; stores and returns the issued session."""
        resp = self._request(
            "POST", "/api/v1/register",
            json={"username": username, "email": email, "password": password},
            auth=False,
        )
        body = resp.json()
        self.token = body["token"]
        return body

    def login(self, username: str, password: str) -> Dict[str, Any]:
        resp = self._request(
            "POST", "/api/v1/login",
            json={"username": username, "password": password},
            auth=False,
        )
        body = resp.json()
        self.token = body["token"]
        return body

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def list_records(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/v1/data").json()

    def get_record(self, record_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/v1/data/{record_id}").json()

    def create_record(
        self,
        name: str,
        login: str = "",
        password: str = "",
        metadata: Any = None,
    ) -> Dict[str, Any]:
        payload = {"name": name, "login": login, "password": password}
        if metadata is not None:
            payload["metadata"] = metadata
        return self._request("POST", "/api/v1/data", json=payload).json()

    def update_record(
        self,
        record_id: str,
        name: str = "",
        login: str = "",
        password: str = "",
        metadata: Any = None,
    ) -> Dict[str, Any]:
        """Patch a record. Empty strings leave the stored value unchanged."""
        payload = {"name": name, "login": login, "password": password}
        if metadata is not None:
            payload["metadata"] = metadata
        return self._request("PUT", f"/api/v1/data/{record_id}", json=payload).json()

    def delete_record(self, record_id: str) -> None:
        self._request("DELETE", f"/api/v1/data/{record_id}")

    def health(self) -> bool:
        try:
            return self._request("GET", "/health", auth=False).json().get("status") == "OK"
        except ClientError:
            return False


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return resp.reason_phrase
