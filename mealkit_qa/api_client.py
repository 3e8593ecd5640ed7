"""
GoRest API Client
Wraps every call to the GoRest users API behind a single request method
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from mealkit_qa.models import ApiResponse, User

logger = logging.getLogger(__name__)

PAYLOAD_METHODS = frozenset({"POST", "PATCH", "PUT"})


class ApiTransportError(Exception):
    """Raised when a request never produced an HTTP response (DNS, connect, timeout)."""

    def __init__(self, method: str, url: str, timeout: float, reason: str):
        self.method = method
        self.url = url
        self.timeout = timeout
        self.reason = reason
        super().__init__(f"{method} {url} failed (timeout={timeout}s): {reason}")


class GoRestClient:
    """Client for the GoRest users API.

    Non-2xx responses are returned, never raised, so scenarios can assert on
    401/404/422 the same way they assert on 200.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout, transport=transport, follow_redirects=False)

    def __enter__(self) -> "GoRestClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def build_headers(self, headers: Optional[Mapping[str, str]] = None) -> httpx.Headers:
        """Defaults first, caller values replace them on (case-insensitive) key collision."""
        merged = httpx.Headers(self.default_headers())
        if headers:
            merged.update(headers)
        return merged

    def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        """Issue a request and hand back the raw response."""
        method = method.upper()
        url = f"{self.base_url}{endpoint}"
        kwargs: Dict[str, Any] = {"headers": self.build_headers(headers)}
        if method in PAYLOAD_METHODS and _has_payload(body):
            kwargs["json"] = body

        logger.debug(f"{method} {url}")
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            logger.error(f"Request failed: {method} {url}: {exc}")
            raise ApiTransportError(method, url, self.timeout, str(exc) or type(exc).__name__) from exc

        logger.debug(f"{method} {url} -> {response.status_code}")
        return ApiResponse(
            status=response.status_code,
            body=_decode_body(response),
            headers=dict(response.headers),
        )

    def list_users(self) -> ApiResponse:
        return self.request("GET", "/users")

    def get_user(self, user_id: int) -> ApiResponse:
        return self.request("GET", f"/users/{user_id}")

    def update_user(self, user_id: int, payload: Mapping[str, Any]) -> ApiResponse:
        """PATCH a user; fields absent from ``payload`` are left as they are."""
        return self.request("PATCH", f"/users/{user_id}", dict(payload))


def _has_payload(body: Any) -> bool:
    # None, False, 0 and "" mean "no body"; empty dicts and lists are still sent
    if body is None or isinstance(body, (bool, int, float, str)):
        return bool(body)
    return True


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def find_first_active_user(users: Iterable[Any]) -> Any:
    """Return the first active user in input order, or None."""
    for user in users:
        status = user.status if isinstance(user, User) else user.get("status")
        if status == "active":
            return user
    return None
