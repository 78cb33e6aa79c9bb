from __future__ import annotations

import pytest

from speedscore.api.errors import ApiError, AuthenticationError, EmailNotVerifiedError
from speedscore.models.models import Course
from speedscore.services import (
    BuddyService,
    CompetitionService,
    CourseService,
    FeedService,
    RoundService,
    SupportService,
    UserService,
    rank_courses,
)

LOGIN_BODY = {
    "user": {"_id": "u9", "accountInfo": {"email": "sam@example.com"}, "personalInfo": {"displayName": "Sam"}},
    "jwtToken": "jwt-9",
    "jwtTokenExpiry": "2999-01-01T00:00:00Z",
    "refreshToken": {"token": "refresh-9", "expiresAt": "2999-02-01T00:00:00Z"},
}

COURSES = [
    {"id": "c1", "shortName": "PB", "name": "Pebble Beach Golf Links",
     "tees": {"Blue": {"_id": "tee-blue", "name": "Blue"}, "Gold": {"_id": "tee-gold", "name": "Gold"}}},
    {"id": "c2", "shortName": "TP", "name": "Torrey Pines South", "tees": {}},
    {"id": "c3", "shortName": "PC", "name": "Pebble Creek Country Club", "tees": {}},
    {"id": "c4", "shortName": "BP", "name": "Bethpage Black", "tees": {}},
]


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------

def test_login_stores_session(client, fake_http, session_store) -> None:
    fake_http.add("POST", "auth/login", body=LOGIN_BODY)

    user = UserService(client).login("sam@example.com", "pw")

    assert user.display_name == "Sam"
    assert fake_http.calls[0]["json"] == {"email": "sam@example.com", "password": "pw"}
    assert "Authorization" not in fake_http.calls[0]["headers"]
    assert session_store.is_authenticated
    assert session_store.refresh_token == "refresh-9"
    assert session_store.tokens.refresh_token_expiry == "2999-02-01T00:00:00Z"


def test_login_unverified_email(client, fake_http, session_store) -> None:
    fake_http.add("POST", "auth/login", status_code=202, body={"message": "Verify first"})
    with pytest.raises(EmailNotVerifiedError) as excinfo:
        UserService(client).login("sam@example.com", "pw")
    assert excinfo.value.status == 202
    assert not session_store.is_authenticated


def test_login_rejected(client, fake_http) -> None:
    fake_http.add("POST", "auth/login", status_code=401, body={"message": "Invalid email or password"})
    with pytest.raises(ApiError, match="Login failed: Invalid email or password"):
        UserService(client).login("sam@example.com", "bad")


def test_logout_clears_session_even_when_server_fails(client, fake_http, logged_in) -> None:
    fake_http.add("POST", "auth/logout", status_code=500, body={"message": "down"})
    with pytest.raises(ApiError):
        UserService(client).logout()
    assert fake_http.calls[0]["json"] == {"refreshToken": "refresh-1"}
    assert not logged_in.is_authenticated


def test_current_user_refreshes_cache(client, fake_http, logged_in) -> None:
    fake_http.add("GET", "users/get-user", body={"_id": "u1", "personalInfo": {"displayName": "Patty"}})
    assert UserService(client).get_current_user().display_name == "Patty"
    assert logged_in.user.display_name == "Patty"


def test_update_user(client, fake_http, logged_in) -> None:
    fake_http.add("PUT", "users/update-user/u1", body={"_id": "u1", "personalInfo": {"parGender": "womens"}})
    user = UserService(client).update_user({"personalInfo": {"parGender": "womens"}})
    assert user.par_gender == "womens"
    assert logged_in.user.par_gender == "womens"


def test_user_operations_require_login(client) -> None:
    with pytest.raises(AuthenticationError):
        UserService(client).update_user({})


def test_reset_password_checks_confirmation(client, fake_http) -> None:
    with pytest.raises(ApiError, match="Passwords do not match"):
        UserService(client).reset_password("tok", "a", "b")
    assert fake_http.calls == []

    fake_http.add("POST", "auth/reset-password", body={"message": "ok"})
    UserService(client).reset_password("tok", "a", "a")
    assert fake_http.calls[0]["json"] == {"token": "tok", "password": "a", "confirmPassword": "a"}


def test_email_verification_calls(client, fake_http) -> None:
    fake_http.add("POST", "auth/email-verify/", body={"ok": True})
    fake_http.add("POST", "auth/resend-email-verification/", body={"ok": True})
    service = UserService(client)
    service.verify_email("u1", "tok")
    service.resend_verification_email("sam@example.com")
    assert fake_http.calls[0]["json"] == {"userId": "u1", "token": "tok"}
    assert fake_http.calls[1]["json"] == {"email": "sam@example.com"}


# ----------------------------------------------------------------------
# Courses
# ----------------------------------------------------------------------

def test_rank_courses_by_relevance() -> None:
    courses = [Course.from_dict(c) for c in COURSES]
    ranked = rank_courses("pebble beach", courses)
    assert [c.id for c in ranked] == ["c1", "c3"]
    assert rank_courses("augusta", courses) == []
    assert rank_courses("", courses) == []
    assert [c.id for c in rank_courses("pebble beach", courses, max_results=1)] == ["c1"]


def test_list_courses_caches_in_session(client, fake_http, logged_in) -> None:
    fake_http.add("GET", "courses", body=COURSES)
    service = CourseService(client)

    assert [c.short_name for c in service.list_courses()] == ["PB", "TP", "PC", "BP"]
    assert logged_in.courses == COURSES

    service.list_courses(use_cache=True)
    service.search_cached("torrey")
    assert len(fake_http.calls) == 1
    assert service.find_cached("pb").find_tee("blue").id == "tee-blue"


def test_server_search_payload(client, fake_http, logged_in) -> None:
    fake_http.add("POST", "courses/search", body=[COURSES[1]])
    result = CourseService(client).search("torrey", limit=5)
    assert result[0].name == "Torrey Pines South"
    assert fake_http.calls[0]["json"] == {"searchString": "torrey", "category": "Name", "limit": 5}


def test_fetch_by_ids(client, fake_http, logged_in) -> None:
    fake_http.add("POST", "courses/fetch-by-ids", body=COURSES[:2])
    assert len(CourseService(client).get_by_ids(["c1", "c2"])) == 2
    assert fake_http.calls[0]["json"] == {"courseIds": ["c1", "c2"]}


# ----------------------------------------------------------------------
# Rounds
# ----------------------------------------------------------------------

def test_log_round_adds_junction_ids(client, fake_http, logged_in) -> None:
    logged_in.cache_courses(COURSES)
    fake_http.add("POST", "rounds", body={"_id": "r1", "strokes": 80, "time": 3330, "course": "PB"})

    logged = RoundService(client).log_round(
        {"date": "2026-05-01", "course": "pb", "tee": "gold", "strokes": 80, "minutes": 55, "seconds": 30}
    )

    sent = fake_http.calls[0]["json"]
    assert (sent["playerId"], sent["courseId"], sent["teeId"], sent["time"]) == ("u1", "c1", "tee-gold", 3330)
    assert logged.sgs == "135:30"
    assert logged_in.rounds[-1]["_id"] == "r1"


def test_round_seconds_are_validated(client, logged_in) -> None:
    with pytest.raises(ApiError, match="Seconds must be between 0 and 59"):
        RoundService(client).with_junction_ids({"course": "PB", "minutes": 50, "seconds": 75})


def test_unknown_course_leaves_ids_empty(client, logged_in) -> None:
    data = RoundService(client).with_junction_ids({"course": "Nowhere", "minutes": 1})
    assert data["courseId"] is None
    assert data["teeId"] is None


def test_update_and_delete_round_keep_cache_in_step(client, fake_http, logged_in) -> None:
    logged_in.cache_rounds([{"_id": "r1", "strokes": 80}, {"_id": "r2", "strokes": 90}])
    fake_http.add("PUT", "rounds/r1", body={"_id": "r1", "strokes": 78})
    fake_http.add("DELETE", "rounds/r2", body={"message": "deleted"})
    service = RoundService(client)

    service.update_round("r1", {"strokes": 78, "minutes": 50})
    service.delete_round("r2")

    assert logged_in.rounds == [{"_id": "r1", "strokes": 78}]


# ----------------------------------------------------------------------
# Competitions
# ----------------------------------------------------------------------

def test_create_and_save_tabs(client, fake_http, logged_in) -> None:
    fake_http.add("POST", "competition/newCompetition", body={"competitionId": "t9"})
    fake_http.add("POST", "competition/t9/reg-payment-info", body={"ok": True})
    fake_http.add("POST", "competition/t9/divisions", body={"ok": True})
    service = CompetitionService(client)

    assert service.create({"name": "Club Champs"}) == "t9"
    service.save_reg_payment_info("t9", {"currencyType": "USD"})
    service.save_divisions("t9", [])

    assert [c["path"] for c in fake_http.calls] == [
        "competition/newCompetition", "competition/t9/reg-payment-info", "competition/t9/divisions",
    ]
    with pytest.raises(ValueError):
        service.save_tab("t9", "rounds", {})


def test_competition_endpoint_is_configurable(client, fake_http, isolated_config, logged_in) -> None:
    isolated_config.set("api.competition_endpoint", "tournaments/")
    fake_http.add("GET", "tournaments", body=[{"_id": "t1", "basicInfo": {"name": "Open", "uniqueName": "O26"}}])
    tournaments = CompetitionService(client).list_tournaments()
    assert tournaments[0].unique_name == "O26"


def test_public_views_need_no_login(client, fake_http) -> None:
    fake_http.add("GET", "competition/u/SSO26/leaderboard", body={"divisions": []})
    assert CompetitionService(client).public_leaderboard("SSO26") == {"divisions": []}
    assert "Authorization" not in fake_http.calls[0]["headers"]


def test_scores_carry_competition_id(client, fake_http, logged_in) -> None:
    fake_http.add("POST", "competition/t1/scores", body={"ok": True})
    fake_http.add("POST", "competition/t1/player", body={"ok": True})
    service = CompetitionService(client)
    service.save_scores("t1", {"playerId": "u1", "strokes": 80})
    service.register_player("t1", {"playerId": "u1"})
    assert fake_http.calls[0]["json"] == {"playerId": "u1", "strokes": 80, "competitionId": "t1"}
    assert fake_http.calls[1]["json"] == [{"playerId": "u1"}]


# ----------------------------------------------------------------------
# Buddies, feed, support
# ----------------------------------------------------------------------

def test_buddy_request_paths(client, fake_http, logged_in) -> None:
    for method, path in [
        ("POST", "users/u1/buddies/u2/send"),
        ("PUT", "users/u1/buddies/u2/accept"),
        ("DELETE", "users/u1/buddies/u2/cancel/incoming"),
        ("DELETE", "users/u1/buddies/u2/cancel/outgoing"),
        ("DELETE", "users/u1/buddies/u2/remove/existing"),
    ]:
        fake_http.add(method, path, body={"ok": True})

    service = BuddyService(client)
    service.send("u2")
    service.accept("u2")
    service.reject("u2")
    service.cancel("u2")
    service.remove("u2")

    assert [c["method"] for c in fake_http.calls] == ["POST", "PUT", "DELETE", "DELETE", "DELETE"]
    assert fake_http.calls[1]["json"] == {}


def test_buddies_require_login(client) -> None:
    with pytest.raises(AuthenticationError):
        BuddyService(client).current()


def test_feed_post(client, fake_http, logged_in) -> None:
    fake_http.add("POST", "feeds/addPost", body={"_id": "p1"})
    FeedService(client).add_post("Broke 80!", tags=["u2"])

    call = fake_http.calls[0]
    assert call["params"] == {"userId": "u1"}
    assert call["json"]["textContent"] == "Broke 80!"
    assert call["json"]["userFirstName"] == "Pat"
    assert call["json"]["tags"] == ["u2"]


def test_support_ticket_is_public(client, fake_http) -> None:
    fake_http.add("POST", "support/tickets", body={"ok": True})
    SupportService(client).create_ticket({"name": "Sam", "email": "sam@example.com", "issue": "Help"})
    assert fake_http.calls[0]["json"]["issue"] == "Help"
