"""
Gateway view repository client for the view designer.

Loads and saves view documents through the Web Designer REST API hosted by
the Gateway (``/data/webdesigner/api/v1``), and lists projects and views.

The client does no retries and no caching. HTTP failures are
mapped onto the :mod:`view_designer.core.errors` repository exceptions so the
document controller can report them without knowing about HTTP.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from view_designer.core.errors import (
    ConflictError,
    ForbiddenError,
    ModelError,
    NetworkError,
    NotFoundError,
    PayloadTooLargeError,
    RepositoryError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from view_designer.core.models import ViewDocument

__all__ = ["LoadedView", "SaveReceipt", "GatewayViewRepository"]

logger = logging.getLogger(__name__)

DEFAULT_API_PREFIX = "/data/webdesigner/api/v1"

_STATUS_ERRORS = {
    400: ValidationError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    413: PayloadTooLargeError,
}


@dataclass(frozen=True)
class LoadedView:
    """A view fetched from the repository with its version token."""
    project: str
    view_path: str
    document: ViewDocument
    etag: Optional[str] = None


@dataclass(frozen=True)
class SaveReceipt:
    """Acknowledgement of a successful save."""
    project: str
    view_path: str
    etag: Optional[str] = None
    size: Optional[int] = None
    message: str = ""


class GatewayViewRepository:
    """Reads and writes view documents over the Gateway REST API."""

    def __init__(self, base_url: str, api_prefix: str = DEFAULT_API_PREFIX,
                 timeout: float = 10, verify_ssl: bool = True,
                 session: Optional[requests.Session] = None):
        """
        Initialize the repository client.

        Args:
            base_url: Gateway root URL, e.g. ``http://localhost:8088``
            api_prefix: Path of the Web Designer API below the base URL
            timeout: Per-request timeout in seconds
            verify_ssl: Whether to verify TLS certificates
            session: Optional pre-authenticated ``requests.Session``
        """
        self.base_url = base_url.rstrip("/")
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix else ""
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Dict[str, Any], session: Optional[requests.Session] = None) -> "GatewayViewRepository":
        """Build a client from the ``repository`` configuration section."""
        return cls(
            base_url=config.get("base_url") or "http://localhost:8088",
            api_prefix=config.get("api_prefix") or DEFAULT_API_PREFIX,
            timeout=config.get("timeout") or 10,
            verify_ssl=config.get("verify_ssl", True),
            session=session,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def list_projects(self) -> List[Dict[str, Any]]:
        """Return the project entries reported by the Gateway."""
        response = self._request("GET", "/projects")
        return _listing(response, "projects")

    def list_views(self, project: str) -> List[Dict[str, Any]]:
        """Return the view entries of *project*."""
        response = self._request("GET", f"/projects/{quote(project, safe='')}/views", project=project)
        return _listing(response, "views")

    def load(self, project: str, view_path: str) -> LoadedView:
        """
        Fetch a view document.

        Raises:
            RepositoryError: Subclass matching the failure (NotFoundError,
                UnauthorizedError, ForbiddenError, ServerError, NetworkError)
            ModelError: If the Gateway returned content that is not a view
        """
        logger.info("Loading view '%s' from project '%s'", view_path, project)
        response = self._request(
            "GET", f"/projects/{quote(project, safe='')}/view",
            params={"path": view_path}, project=project, view_path=view_path,
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ModelError(f"Gateway returned invalid JSON for view '{view_path}'", exc)
        document = ViewDocument.from_view_json(payload)
        etag = _strip_etag(response.headers.get("ETag"))
        logger.info("Loaded view '%s' (%d components)", view_path, document.node_count())
        return LoadedView(project=project, view_path=view_path, document=document, etag=etag)

    def save(self, project: str, view_path: str, document: ViewDocument,
             etag: Optional[str] = None) -> SaveReceipt:
        """
        Persist a view document.

        When *etag* is given it is sent as ``If-Match`` so that concurrent
        edits on the Gateway surface as :class:`ConflictError`.

        Raises:
            RepositoryError: Subclass matching the failure (ConflictError,
                PayloadTooLargeError, ValidationError, ...)
        """
        logger.info("Saving view '%s' to project '%s'", view_path, project)
        headers = {"If-Match": f'"{etag}"'} if etag else {}
        response = self._request(
            "PUT", f"/projects/{quote(project, safe='')}/view",
            params={"path": view_path}, json=document.to_view_json(), headers=headers,
            project=project, view_path=view_path,
        )
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        receipt = SaveReceipt(
            project=project,
            view_path=view_path,
            etag=_strip_etag(response.headers.get("ETag")) or payload.get("etag"),
            size=payload.get("size"),
            message=payload.get("message") or "View saved successfully",
        )
        logger.info("Saved view '%s' (%s bytes)", view_path, receipt.size)
        return receipt

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _request(self, method: str, endpoint: str, project: Optional[str] = None,
                 view_path: Optional[str] = None, **kwargs) -> requests.Response:
        url = f"{self.base_url}{self.api_prefix}{endpoint}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, verify=self.verify_ssl, **kwargs)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise NetworkError(f"Cannot connect to Gateway: {exc}", 0, project, view_path, exc)

        if response.status_code >= 400:
            raise self._error_for(response, project, view_path)
        return response

    def _error_for(self, response: requests.Response, project: Optional[str],
                   view_path: Optional[str]) -> RepositoryError:
        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("error") or body.get("message") or response.reason or f"HTTP {status}"
        logger.warning("Gateway responded %d: %s", status, message)

        if status == 409:
            return ConflictError(message, status, project, view_path,
                                 current_etag=_strip_etag(body.get("currentEtag")))
        if status >= 500:
            return ServerError(message, status, project, view_path)
        error_cls = _STATUS_ERRORS.get(status, RepositoryError)
        return error_cls(message, status, project, view_path)


def _listing(response: requests.Response, key: str) -> List[Dict[str, Any]]:
    """Extract the ``key`` array from a listing response body."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise ModelError(f"Gateway returned invalid JSON for {key} listing", exc)
    if not isinstance(payload, dict):
        raise ModelError(f"Gateway {key} listing must be an object")
    entries = payload.get(key) or []
    if not isinstance(entries, list):
        raise ModelError(f"Gateway {key} listing has invalid '{key}' (must be array)")
    return list(entries)


def _strip_etag(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if value.startswith("W/"):
        value = value[2:]
    return value.strip('"') or None
