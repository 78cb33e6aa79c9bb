"""
Command line interface for SpeedScore.

Every command talks to the backend through one ``ApiClient`` built from the
loaded configuration, except ``schedule`` which does offline date arithmetic.
Errors are reported once as ``Error: <message>`` on stderr with exit code 1.
"""

import argparse
import getpass
import json
import sys
from typing import Any, Dict, List, Optional

from speedscore import __version__
from speedscore.api.client import ApiClient
from speedscore.api.errors import ApiError, DateConflictError, SpeedScoreError
from speedscore.engine.schedule import TournamentSchedule
from speedscore.engine.scoring import calculate_sgs
from speedscore.models.models import Round, RoundType
from speedscore.services import (
    BuddyService,
    CompetitionService,
    CourseService,
    FeedService,
    RoundService,
    SupportService,
    UserService,
)
from speedscore.utils.config_manager import get_config
from speedscore.utils.logger_config import get_logger, setup_logging
from speedscore.utils.time_utils import seconds_to_mmss

logger = get_logger("cli")


class CliContext:
    """Lazily built client and services shared by the command handlers"""

    def __init__(self, client: Optional[ApiClient] = None):
        self._client = client

    @property
    def client(self) -> ApiClient:
        if self._client is None:
            self._client = ApiClient()
        return self._client

    @property
    def users(self) -> UserService:
        return UserService(self.client)

    @property
    def courses(self) -> CourseService:
        return CourseService(self.client)

    @property
    def rounds(self) -> RoundService:
        return RoundService(self.client)

    @property
    def competitions(self) -> CompetitionService:
        return CompetitionService(self.client)

    @property
    def buddies(self) -> BuddyService:
        return BuddyService(self.client)

    @property
    def feed(self) -> FeedService:
        return FeedService(self.client)

    @property
    def support(self) -> SupportService:
        return SupportService(self.client)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _tournament_line(tournament: Dict[str, Any]) -> str:
    basic_info = tournament.get("basicInfo") or {}
    dates = basic_info.get("startDate") or "?"
    if basic_info.get("endDate") and basic_info.get("endDate") != basic_info.get("startDate"):
        dates = f"{dates} - {basic_info['endDate']}"
    return f"{basic_info.get('uniqueName') or '-':<10} {basic_info.get('name') or '(unnamed)'}  {dates}"


# ----------------------------------------------------------------------
# Account
# ----------------------------------------------------------------------

def cmd_login(args, ctx: CliContext) -> int:
    password = args.password or getpass.getpass("Password: ")
    user = ctx.users.login(args.email, password)
    print(f"Logged in as {user.display_name}")
    return 0


def cmd_logout(args, ctx: CliContext) -> int:
    ctx.users.logout()
    print("Logged out")
    return 0


def cmd_whoami(args, ctx: CliContext) -> int:
    user = ctx.client.session_store.user
    if user is None:
        print("Not logged in")
        return 1
    if args.refresh:
        user = ctx.users.get_current_user()
    print(f"{user.display_name} <{user.email}>")
    return 0


# ----------------------------------------------------------------------
# Courses
# ----------------------------------------------------------------------

def _print_courses(courses) -> None:
    for course in courses:
        print(f"{course.id or '-':<26} {course.short_name:<20} {course.name}")


def cmd_courses(args, ctx: CliContext) -> int:
    service = ctx.courses
    if args.action == "list":
        _print_courses(service.list_courses(use_cache=args.cached))
    elif args.action == "search":
        if args.offline:
            results = service.search_cached(args.query, max_results=args.limit)
        else:
            results = service.search(args.query, category=args.category, limit=args.limit)
        if not results:
            print("No matching courses")
        _print_courses(results)
    elif args.action == "show":
        _print_json(service.get(args.course_id).to_dict())
    return 0


# ----------------------------------------------------------------------
# Rounds
# ----------------------------------------------------------------------

def _round_line(round_: Round) -> str:
    time_str = seconds_to_mmss(round_.time_seconds)
    return (f"{round_.id or '-':<26} {round_.date or '?':<12} {round_.course or '?':<20} "
            f"{round_.strokes:>4} {time_str:>7}  SGS {calculate_sgs(round_.strokes, time_str)}")


def cmd_rounds(args, ctx: CliContext) -> int:
    service = ctx.rounds
    if args.action == "list":
        rounds = service.list_rounds()
        if not rounds:
            print("No rounds logged")
        for round_ in rounds:
            print(_round_line(round_))
    elif args.action == "show":
        _print_json(service.get(args.round_id).to_dict())
    elif args.action == "log":
        round_data = {
            "date": args.date,
            "course": args.course,
            "tee": args.tee,
            "roundType": args.type,
            "strokes": args.strokes,
            "minutes": args.minutes,
            "seconds": args.seconds,
            "notes": args.notes or "",
        }
        # Course and tee ids come from the cached course list
        if not ctx.client.session_store.courses:
            ctx.courses.list_courses()
        logged = service.log_round(round_data)
        print(f"Logged round {logged.id}: SGS {logged.sgs}")
    elif args.action == "delete":
        service.delete_round(args.round_id)
        print(f"Deleted round {args.round_id}")
    return 0


# ----------------------------------------------------------------------
# Tournaments
# ----------------------------------------------------------------------

def cmd_tournaments(args, ctx: CliContext) -> int:
    service = ctx.competitions
    if args.action == "list":
        for tournament in service.list_raw():
            print(_tournament_line(tournament))
    elif args.action == "show":
        _print_json(service.get(args.tournament_id))
    elif args.action == "public":
        for tournament in service.public_tournaments() or []:
            print(_tournament_line(tournament))
    elif args.action == "leaderboard":
        _print_json(service.public_leaderboard(args.unique_name))
    elif args.action == "teesheet":
        _print_json(service.public_tee_sheet(args.unique_name))
    return 0


# ----------------------------------------------------------------------
# Schedule (offline)
# ----------------------------------------------------------------------

def _parse_round_args(round_args: Optional[List[str]]) -> Dict[str, Dict[int, int]]:
    """Parse ``DIVISION:ROUND:DAY`` triples with 1-based round and day numbers"""
    offsets: Dict[str, Dict[int, int]] = {}
    for value in round_args or []:
        parts = value.split(":")
        if len(parts) != 3:
            raise SpeedScoreError(f"Invalid round {value!r}, expected DIVISION:ROUND:DAY")
        division, round_number, day = parts
        try:
            offsets.setdefault(division, {})[int(round_number) - 1] = int(day) - 1
        except ValueError:
            raise SpeedScoreError(f"Invalid round {value!r}, round and day must be numbers")
    return offsets


def cmd_schedule(args, ctx: CliContext) -> int:
    if args.action == "days":
        for option in TournamentSchedule.from_dates(args.start, args.end).day_options():
            print(option["label"])
        return 0

    schedule = TournamentSchedule.from_dates(
        args.start, args.end, division_round_offsets=_parse_round_args(args.round))

    current_conflicts = schedule.find_conflicts(schedule.end_date_offset)
    if current_conflicts:
        print("Rounds outside the current tournament dates:")
        for conflict in current_conflicts:
            print(f"  {conflict.describe()}")

    try:
        if args.new_start:
            schedule.change_start_date(args.new_start)
        if args.new_end:
            schedule.change_end_date(args.new_end)
    except DateConflictError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        for conflict in exc.conflicts:
            print(f"  {conflict.describe()}", file=sys.stderr)
        return 1

    print(f"Tournament {schedule.start_date} to {schedule.end_date} ({schedule.duration_days} days)")
    for division_id in schedule.division_round_offsets:
        days = ", ".join(f"R{i + 1}: {schedule.date_for_offset(offset)}"
                         for i, offset in enumerate(schedule.round_offsets(division_id)))
        print(f"  {division_id}: {days}")
    return 1 if schedule.has_conflicts() else 0


# ----------------------------------------------------------------------
# Buddies, feed, support
# ----------------------------------------------------------------------

def cmd_buddies(args, ctx: CliContext) -> int:
    service = ctx.buddies
    if args.action == "list":
        _print_json(service.current())
    elif args.action == "requests":
        _print_json(service.outgoing() if args.outgoing else service.incoming())
    else:
        actions = {
            "send": service.send,
            "accept": service.accept,
            "reject": service.reject,
            "cancel": service.cancel,
            "remove": service.remove,
        }
        actions[args.action](args.buddy_id)
        print(f"Buddy request {args.action}: {args.buddy_id}")
    return 0


def cmd_feed(args, ctx: CliContext) -> int:
    service = ctx.feed
    if args.action == "list":
        if args.mine:
            _print_json(service.user_feed(page=args.page, limit=args.limit))
        else:
            _print_json(service.feed(page=args.page, limit=args.limit))
    elif args.action == "post":
        service.add_post(args.text, tags=args.tag)
        print("Posted")
    return 0


def cmd_support(args, ctx: CliContext) -> int:
    ctx.support.create_ticket({"name": args.name, "email": args.email, "issue": args.issue})
    print("Support ticket submitted")
    return 0


def cmd_web(args, ctx: CliContext) -> int:
    from speedscore.web.app import create_app

    config = get_config()
    host = args.host or config.get("web.host", "127.0.0.1")
    port = args.port or config.get("web.port", 5600)
    logger.info(f"Starting public viewer on {host}:{port}")
    create_app().run(host=host, port=port, debug=args.debug)
    return 0


# ----------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="speedscore", description="SpeedScore speedgolf client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to a JSON configuration file")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Override log level")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in and store the session")
    login.add_argument("email")
    login.add_argument("--password", help="Password (prompted when omitted)")
    login.set_defaults(handler=cmd_login)

    commands.add_parser("logout", help="End the stored session").set_defaults(handler=cmd_logout)

    whoami = commands.add_parser("whoami", help="Show the logged-in user")
    whoami.add_argument("--refresh", action="store_true", help="Fetch the user from the backend")
    whoami.set_defaults(handler=cmd_whoami)

    courses = commands.add_parser("courses", help="Browse golf courses")
    courses_actions = courses.add_subparsers(dest="action", required=True)
    course_list = courses_actions.add_parser("list")
    course_list.add_argument("--cached", action="store_true", help="Use the cached course list")
    course_search = courses_actions.add_parser("search")
    course_search.add_argument("query")
    course_search.add_argument("--category", default="Name")
    course_search.add_argument("--limit", type=int, default=10)
    course_search.add_argument("--offline", action="store_true", help="Rank cached courses locally")
    courses_actions.add_parser("show").add_argument("course_id")
    courses.set_defaults(handler=cmd_courses)

    rounds = commands.add_parser("rounds", help="Manage logged rounds")
    rounds_actions = rounds.add_subparsers(dest="action", required=True)
    rounds_actions.add_parser("list")
    rounds_actions.add_parser("show").add_argument("round_id")
    round_log = rounds_actions.add_parser("log")
    round_log.add_argument("--date", required=True)
    round_log.add_argument("--course", required=True, help="Course short name")
    round_log.add_argument("--tee")
    round_log.add_argument("--type", default=RoundType.PRACTICE.value, choices=[t.value for t in RoundType])
    round_log.add_argument("--strokes", type=int, required=True)
    round_log.add_argument("--minutes", type=int, required=True)
    round_log.add_argument("--seconds", type=int, default=0)
    round_log.add_argument("--notes")
    rounds_actions.add_parser("delete").add_argument("round_id")
    rounds.set_defaults(handler=cmd_rounds)

    tournaments = commands.add_parser("tournaments", help="Tournaments")
    tournament_actions = tournaments.add_subparsers(dest="action", required=True)
    tournament_actions.add_parser("list")
    tournament_actions.add_parser("show").add_argument("tournament_id")
    tournament_actions.add_parser("public")
    tournament_actions.add_parser("leaderboard").add_argument("unique_name")
    tournament_actions.add_parser("teesheet").add_argument("unique_name")
    tournaments.set_defaults(handler=cmd_tournaments)

    schedule = commands.add_parser("schedule", help="Offline tournament date arithmetic")
    schedule_actions = schedule.add_subparsers(dest="action", required=True)
    days = schedule_actions.add_parser("days", help="List tournament days")
    days.add_argument("--start", required=True)
    days.add_argument("--end")
    check = schedule_actions.add_parser("check", help="Preview a date change against division rounds")
    check.add_argument("--start", required=True)
    check.add_argument("--end")
    check.add_argument("--round", action="append", metavar="DIVISION:ROUND:DAY",
                       help="Scheduled round, 1-based round and day numbers (repeatable)")
    check.add_argument("--new-start")
    check.add_argument("--new-end")
    schedule.set_defaults(handler=cmd_schedule)

    buddies = commands.add_parser("buddies", help="Buddies and buddy requests")
    buddy_actions = buddies.add_subparsers(dest="action", required=True)
    buddy_actions.add_parser("list")
    buddy_actions.add_parser("requests").add_argument("--outgoing", action="store_true")
    for action in ("send", "accept", "reject", "cancel", "remove"):
        buddy_actions.add_parser(action).add_argument("buddy_id")
    buddies.set_defaults(handler=cmd_buddies)

    feed = commands.add_parser("feed", help="Social feed")
    feed_actions = feed.add_subparsers(dest="action", required=True)
    feed_list = feed_actions.add_parser("list")
    feed_list.add_argument("--page", type=int, default=1)
    feed_list.add_argument("--limit", type=int, default=10)
    feed_list.add_argument("--mine", action="store_true", help="Only your own posts")
    feed_post = feed_actions.add_parser("post")
    feed_post.add_argument("text")
    feed_post.add_argument("--tag", action="append")
    feed.set_defaults(handler=cmd_feed)

    support = commands.add_parser("support", help="Submit a support ticket")
    support.add_argument("--name", required=True)
    support.add_argument("--email", required=True)
    support.add_argument("--issue", required=True)
    support.set_defaults(handler=cmd_support)

    web = commands.add_parser("web", help="Run the public tournament viewer")
    web.add_argument("--host")
    web.add_argument("--port", type=int)
    web.add_argument("--debug", action="store_true")
    web.set_defaults(handler=cmd_web)

    return parser


def main(argv: Optional[List[str]] = None, client: Optional[ApiClient] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config(args.config)
    if args.log_level:
        config.set("log.level", args.log_level)
    setup_logging(
        level=config.get("log.level", "WARNING"),
        log_file=config.get("log.file"),
        enable_colors=config.get("log.enable_colors", True),
    )

    try:
        return args.handler(args, CliContext(client))
    except ApiError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        if exc.status == 401:
            print("Run `speedscore login` to log in again.", file=sys.stderr)
        return 1
    except SpeedScoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
