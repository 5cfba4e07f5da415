import json
from unittest.mock import Mock

import pytest
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
from view_designer.core.services.repository_service import GatewayViewRepository, SaveReceipt

API = "http://gateway:8088/data/webdesigner/api/v1"


def _response(status=200, body=None, headers=None, reason="", raw=None):
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    if raw is not None:
        resp._content = raw
    else:
        resp._content = json.dumps(body).encode("utf-8") if body is not None else b""
    resp.headers.update(headers or {})
    return resp


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def repo(session):
    return GatewayViewRepository("http://gateway:8088/", session=session)


def test_load_reads_content_and_etag(repo, session, view_content):
    session.request.return_value = _response(
        body={"project": "Demo", "path": "Main/Overview", "content": view_content},
        headers={"ETag": 'W/"abc123"'},
    )

    loaded = repo.load("Demo", "Main/Overview")

    session.request.assert_called_once_with(
        "GET", f"{API}/projects/Demo/view",
        timeout=10, verify=True, params={"path": "Main/Overview"},
    )
    assert loaded.project == "Demo"
    assert loaded.view_path == "Main/Overview"
    assert loaded.etag == "abc123"
    assert loaded.document.to_dict() == view_content


def test_project_names_are_url_quoted(repo, session, view_content):
    session.request.return_value = _response(body={"content": view_content})
    loaded = repo.load("My Project", "Main")

    assert session.request.call_args[0][1] == f"{API}/projects/My%20Project/view"
    assert loaded.etag is None


def test_load_rejects_invalid_payloads(repo, session):
    session.request.return_value = _response(raw=b"<html>oops</html>")
    with pytest.raises(ModelError):
        repo.load("Demo", "Main")

    session.request.return_value = _response(body={"project": "Demo"})
    with pytest.raises(ModelError, match="content"):
        repo.load("Demo", "Main")


def test_save_sends_if_match_and_returns_receipt(repo, session, document):
    session.request.return_value = _response(
        body={"success": True, "project": "Demo", "path": "Main", "size": 512, "message": "View saved successfully"},
        headers={"ETag": '"def456"'},
    )

    receipt = repo.save("Demo", "Main", document, etag="abc123")

    args, kwargs = session.request.call_args
    assert args == ("PUT", f"{API}/projects/Demo/view")
    assert kwargs["headers"] == {"If-Match": '"abc123"'}
    assert kwargs["json"] == {"content": document.to_dict()}
    assert kwargs["params"] == {"path": "Main"}
    assert receipt == SaveReceipt(project="Demo", view_path="Main", etag="def456", size=512,
                                  message="View saved successfully")


def test_save_without_etag_sends_no_precondition(repo, session, document):
    session.request.return_value = _response(raw=b"")
    receipt = repo.save("Demo", "Main", document)

    assert session.request.call_args[1]["headers"] == {}
    assert receipt.etag is None
    assert receipt.message == "View saved successfully"


def test_conflict_carries_current_etag(repo, session, document):
    session.request.return_value = _response(
        409, {"error": "View was modified by another user", "status": 409, "currentEtag": "zzz"},
    )

    with pytest.raises(ConflictError) as excinfo:
        repo.save("Demo", "Main", document, etag="abc")

    err = excinfo.value
    assert err.status == 409
    assert err.current_etag == "zzz"
    assert err.project == "Demo"
    assert str(err) == "[Demo:Main] View was modified by another user"


@pytest.mark.parametrize("status, error_cls", [
    (400, ValidationError),
    (401, UnauthorizedError),
    (403, ForbiddenError),
    (404, NotFoundError),
    (413, PayloadTooLargeError),
    (500, ServerError),
    (503, ServerError),
    (418, RepositoryError),
])
def test_status_codes_map_to_exceptions(repo, session, status, error_cls):
    session.request.return_value = _response(status, {"error": "nope", "status": status})

    with pytest.raises(error_cls) as excinfo:
        repo.load("Demo", "Main")

    assert type(excinfo.value) is error_cls
    assert excinfo.value.status == status
    assert "nope" in str(excinfo.value)


def test_error_message_falls_back_to_reason(repo, session):
    session.request.return_value = _response(502, raw=b"Bad Gateway", reason="Bad Gateway")
    with pytest.raises(ServerError, match="Bad Gateway"):
        repo.list_projects()


def test_transport_failure_is_network_error(repo, session):
    cause = requests.ConnectionError("connection refused")
    session.request.side_effect = cause

    with pytest.raises(NetworkError) as excinfo:
        repo.load("Demo", "Main")

    assert excinfo.value.status == 0
    assert excinfo.value.cause is cause
    assert isinstance(excinfo.value, RepositoryError)


def test_list_projects_and_views(repo, session):
    session.request.return_value = _response(body={"projects": [{"name": "Demo", "enabled": True}]})
    assert repo.list_projects() == [{"name": "Demo", "enabled": True}]
    assert session.request.call_args[0] == ("GET", f"{API}/projects")

    session.request.return_value = _response(body={"views": [{"path": "Main/Overview"}]})
    assert repo.list_views("Demo") == [{"path": "Main/Overview"}]
    assert session.request.call_args[0] == ("GET", f"{API}/projects/Demo/views")

    session.request.return_value = _response(body={})
    assert repo.list_views("Demo") == []


@pytest.mark.parametrize("response", [
    _response(raw=b"<html>oops</html>"),
    _response(body=[{"name": "Demo"}]),
    _response(body={"projects": "Demo", "views": "Main"}),
])
def test_listings_reject_invalid_payloads(repo, session, response):
    session.request.return_value = response
    with pytest.raises(ModelError):
        repo.list_projects()
    with pytest.raises(ModelError):
        repo.list_views("Demo")


def test_from_config(session):
    repo = GatewayViewRepository.from_config(
        {"base_url": "https://gw.example.com", "api_prefix": "api/v2/", "timeout": 3, "verify_ssl": False},
        session=session,
    )
    assert repo.base_url == "https://gw.example.com"
    assert repo.api_prefix == "/api/v2"
    assert repo.timeout == 3
    assert repo.verify_ssl is False
    assert repo.session is session

    defaults = GatewayViewRepository.from_config({}, session=session)
    assert defaults.base_url == "http://localhost:8088"
    assert defaults.api_prefix == "/data/webdesigner/api/v1"
    assert defaults.verify_ssl is True
