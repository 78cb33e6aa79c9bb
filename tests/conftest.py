from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Tuple

import pytest

from speedscore.api.client import ApiClient
from speedscore.models.models import AuthTokens
from speedscore.session.store import SessionStore
from speedscore.utils.config_manager import ENV_MAPPINGS, ConfigManager, set_config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Fresh defaults for every test, with the session file inside tmp_path."""

    for env_var in ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)

    config = ConfigManager(str(tmp_path / "missing_config.json"))
    config.set("session.path", str(tmp_path / "session.json"))
    config.set("log.enable_colors", False)
    set_config(config)
    yield config
    set_config(None)


class FakeResponse:
    def __init__(self, status_code: int = 200, body=None, reason: str = "") -> None:
        self.status_code = status_code
        self.text = "" if body is None else (body if isinstance(body, str) else json.dumps(body))
        self.reason = reason

    def json(self):
        return json.loads(self.text)


class FakeHttp:
    """Stands in for ``requests.Session``: canned responses per (method, path), calls recorded."""

    def __init__(self, base_url: str = "http://api.test/") -> None:
        self.base_url = base_url
        self.routes: Dict[Tuple[str, str], List[FakeResponse]] = {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def add(self, method: str, path: str, status_code: int = 200, body=None) -> "FakeHttp":
        self.routes.setdefault((method.upper(), path), []).append(FakeResponse(status_code, body))
        return self

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        path = url[len(self.base_url):]
        self.calls.append({
            "method": method, "path": path, "json": json, "params": params,
            "headers": headers or {}, "timeout": timeout,
        })
        queue = self.routes.get((method.upper(), path))
        if not queue:
            return FakeResponse(404, {"message": f"No route for {method} {path}"}, reason="Not Found")
        # The last response repeats
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def session_store(tmp_path) -> SessionStore:
    return SessionStore(path=str(tmp_path / "session.json"))


@pytest.fixture
def logged_in(session_store) -> SessionStore:
    session_store.login(
        {"_id": "u1", "accountInfo": {"email": "pat@example.com"},
         "personalInfo": {"firstName": "Pat", "lastName": "Green"}},
        AuthTokens(jwt_token="jwt-1", refresh_token="refresh-1"),
    )
    return session_store


@pytest.fixture
def client(fake_http, session_store) -> ApiClient:
    return ApiClient(session_store=session_store, base_url=fake_http.base_url, http=fake_http)


@pytest.fixture
def restore_root_logging():
    """Undo setup_logging() handler changes made by a test."""

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
