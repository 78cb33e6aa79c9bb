from __future__ import annotations

import json
import os

from speedscore.models.models import AuthTokens
from speedscore.session.store import EVENT_LOGIN, EVENT_LOGOUT, SessionStore

USER = {"_id": "u1", "accountInfo": {"email": "pat@example.com"}, "personalInfo": {"displayName": "Pat"}}


def test_empty_store_when_no_file(tmp_path) -> None:
    store = SessionStore(path=str(tmp_path / "none.json"))
    assert not store.is_authenticated
    assert store.user is None
    assert store.rounds == []


def test_default_path_comes_from_config(isolated_config, tmp_path) -> None:
    assert SessionStore(autoload=False).path == str(tmp_path / "session.json")


def test_login_persists_between_instances(tmp_path) -> None:
    path = str(tmp_path / "s.json")
    store = SessionStore(path=path)
    store.login(USER, AuthTokens(jwt_token="jwt", refresh_token="ref"))
    store.cache_rounds([{"_id": "r1"}])

    reloaded = SessionStore(path=path)
    assert reloaded.is_authenticated
    assert reloaded.user_id == "u1"
    assert reloaded.user.display_name == "Pat"
    assert reloaded.refresh_token == "ref"
    assert reloaded.rounds == [{"_id": "r1"}]

    with open(path, encoding="utf-8") as f:
        assert "savedAt" in json.load(f)
    assert [name for name in os.listdir(tmp_path) if name.startswith(".session-")] == []


def test_corrupt_file_is_repaired(tmp_path) -> None:
    path = tmp_path / "s.json"
    path.write_text('{"user": {"_id": "u1"}, "tokens": {"jwtToken": "jwt"}, "rounds": [{"_id": "r1"}', encoding="utf-8")

    store = SessionStore(path=str(path))

    assert store.user_id == "u1"
    assert store.jwt_token == "jwt"


def test_non_object_file_is_discarded(tmp_path) -> None:
    path = tmp_path / "s.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert not SessionStore(path=str(path)).is_authenticated


def test_refresh_keeps_refresh_token_when_none_issued(session_store) -> None:
    session_store.login(USER, AuthTokens(jwt_token="old", refresh_token="ref", refresh_token_expiry="2030-01-01"))
    session_store.update_tokens(AuthTokens(jwt_token="new"))
    assert session_store.jwt_token == "new"
    assert session_store.refresh_token == "ref"
    assert session_store.tokens.refresh_token_expiry == "2030-01-01"


def test_logout_clears_everything_and_notifies_once(session_store) -> None:
    events = []
    session_store.add_listener(events.append)
    session_store.login(USER, AuthTokens(jwt_token="jwt"))
    session_store.cache_courses([{"id": "c1"}])

    session_store.logout()
    session_store.logout()

    assert events == [EVENT_LOGIN, EVENT_LOGOUT]
    assert session_store.courses == []
    assert session_store.user_data is None

    session_store.remove_listener(events.append)
    session_store.login(USER, AuthTokens(jwt_token="jwt"))
    assert events == [EVENT_LOGIN, EVENT_LOGOUT]


def _bump_mtime(path: str, seconds: int) -> None:
    stamp = 1_700_000_000_000_000_000 + seconds * 1_000_000_000
    os.utime(path, ns=(stamp, stamp))


def test_changes_from_another_process_are_detected(tmp_path) -> None:
    path = str(tmp_path / "shared.json")
    cli_store = SessionStore(path=path)
    other = SessionStore(path=path)
    events = []
    cli_store.add_listener(events.append)

    assert cli_store.reload_if_changed() is False

    other.login(USER, AuthTokens(jwt_token="jwt"))
    _bump_mtime(path, 1)
    assert cli_store.reload_if_changed() is True
    assert cli_store.is_authenticated
    assert events == [EVENT_LOGIN]

    assert cli_store.reload_if_changed() is False

    other.logout()
    _bump_mtime(path, 2)
    assert cli_store.reload_if_changed() is True
    assert not cli_store.is_authenticated
    assert events == [EVENT_LOGIN, EVENT_LOGOUT]


def test_file_that_is_not_utf8_is_discarded(tmp_path) -> None:
    path = tmp_path / "s.json"
    path.write_bytes(b'{"user": "\xff\xfe broken')

    store = SessionStore(path=str(path))

    assert not store.is_authenticated
    assert store.rounds == []

    store.login(USER, AuthTokens(jwt_token="jwt"))
    assert SessionStore(path=str(path)).user_id == "u1"


def test_sections_of_the_wrong_type_are_dropped(tmp_path) -> None:
    path = tmp_path / "s.json"
    path.write_text(json.dumps({
        "user": None,
        "tokens": "garbage",
        "rounds": {"_id": "r1"},
        "courses": [{"_id": "c1"}],
    }), encoding="utf-8")

    store = SessionStore(path=str(path))

    assert store.user is None
    assert store.jwt_token is None
    assert store.rounds == []
    assert store.courses == [{"_id": "c1"}]


def test_user_that_is_not_an_object_is_dropped(tmp_path) -> None:
    path = tmp_path / "s.json"
    path.write_text(json.dumps({"user": ["u1"], "tokens": {"jwtToken": "jwt"}}), encoding="utf-8")

    store = SessionStore(path=str(path))

    assert store.user is None
    assert store.jwt_token == "jwt"
    assert not store.is_authenticated
