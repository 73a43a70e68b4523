"""CLI entry point for the frost monitor."""

import argparse
import logging

from frostwatch.config.loader import load_config, redacted_json
from frostwatch.config.schema import FrostConfig
from frostwatch.daemon import FrostDaemon, daemon_status, stop_daemon
from frostwatch.exceptions import ConfigError, PersistenceError
from frostwatch.models.geo import Coordinate
from frostwatch.pipeline.poll_pipeline import PollPipeline
from frostwatch.pipeline.reporting import format_summary_json
from frostwatch.pipeline.runtime import build_runtime
from frostwatch.pipeline.summary_pipeline import MorningSummaryPipeline
from frostwatch.storage.database import init_db
from frostwatch.storage.store import Store

DEFAULT_CONFIG = "frostwatch.yaml"
DEFAULT_DB = "data/frostwatch.db"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="frostwatch",
        description="Freeze warnings for registered locations",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Config YAML path")
    parser.add_argument("--db", default=DEFAULT_DB, help="SQLite DB path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    poll_p = sub.add_parser("poll", help="Run one forecast poll")
    poll_p.add_argument("--json", action="store_true", help="Print the run summary as JSON")
    summary_p = sub.add_parser("summary", help="Send morning summaries now")
    summary_p.add_argument("--json", action="store_true", help="Print the run summary as JSON")
    sub.add_parser("sweep", help="Remove expired cache entries")

    daemon_p = sub.add_parser("daemon", help="Run the scheduler")
    daemon_p.add_argument("--stop", action="store_true", help="Stop a running daemon")
    daemon_p.add_argument("--status", action="store_true", help="Show daemon status")

    # users add
    users_p = sub.add_parser("users", help="User operations")
    users_sub = users_p.add_subparsers(dest="users_command")
    uadd = users_sub.add_parser("add", help="Register a chat user")
    uadd.add_argument("chat_id")
    uadd.add_argument("--username", default="")

    # locations add / list / remove
    loc_p = sub.add_parser("locations", help="Location operations")
    loc_sub = loc_p.add_subparsers(dest="locations_command")
    ladd = loc_sub.add_parser("add", help="Add a location for a user")
    ladd.add_argument("chat_id")
    ladd.add_argument("name")
    ladd.add_argument("latitude", type=float)
    ladd.add_argument("longitude", type=float)
    llist = loc_sub.add_parser("list", help="List locations")
    llist.add_argument("chat_id", nargs="?")
    lrm = loc_sub.add_parser("remove", help="Remove a location")
    lrm.add_argument("chat_id")
    lrm.add_argument("location_id", type=int)

    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display effective config")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "daemon" and args.stop:
        return stop_daemon()
    if args.command == "daemon" and args.status:
        return daemon_status()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Config error: {e}")
        return 2

    try:
        if args.command in ("poll", "summary", "sweep", "daemon"):
            return _cmd_run(config, args)
        elif args.command == "users":
            return _cmd_users(args)
        elif args.command == "locations":
            return _cmd_locations(args)
        elif args.command == "config":
            return _cmd_config(config, args)
    except ConfigError as e:
        print(f"Config error: {e}")
        return 2
    except PersistenceError as e:
        print(f"Database error: {e}")
        return 1

    parser.print_help()
    return 1


def _cmd_run(config: FrostConfig, args) -> int:
    runtime = build_runtime(config, args.db)
    if args.command in ("poll", "summary"):
        pipeline = PollPipeline if args.command == "poll" else MorningSummaryPipeline
        summary = pipeline(runtime).run()
        if args.json:
            print(format_summary_json(summary))
        return 0 if not summary.errors else 1
    elif args.command == "sweep":
        removed = runtime.cache.sweep()
        print(f"Removed {removed} expired cache entries")
        return 0
    FrostDaemon(runtime).start()
    return 0


def _cmd_users(args) -> int:
    if args.users_command != "add":
        print("Use: users add CHAT_ID [--username NAME]")
        return 1
    init_db(args.db)
    with Store.open(args.db) as store:
        user_id = store.upsert_user(args.chat_id, args.username)
    print(f"User {args.chat_id} registered (id {user_id})")
    return 0


def _cmd_locations(args) -> int:
    init_db(args.db)
    with Store.open(args.db) as store:
        if args.locations_command == "add":
            try:
                coord = Coordinate(args.latitude, args.longitude)
            except ValueError as e:
                print(f"Error: {e}")
                return 1
            user_id = store.upsert_user(args.chat_id)
            try:
                location_id = store.add_location(user_id, args.name, coord)
            except PersistenceError as e:
                print(f"Error: could not add '{args.name}': {e}")
                return 1
            print(f"Added location {location_id}: {args.name} ({coord})")
            return 0

        elif args.locations_command == "list":
            if args.chat_id:
                user = store.get_user_by_chat_id(args.chat_id)
                locations = store.get_locations_for_user(user.id) if user else []
            else:
                locations = store.get_all_locations()
            if not locations:
                print("No locations")
            for loc in locations:
                print(f"  [{loc.id}] {loc.name} ({loc.coordinate}) owner={loc.owner_id}")
            return 0

        elif args.locations_command == "remove":
            user = store.get_user_by_chat_id(args.chat_id)
            if user is None or not store.delete_location(args.location_id, user.id):
                print(f"No location {args.location_id} for {args.chat_id}")
                return 1
            print(f"Removed location {args.location_id}")
            return 0

    print("Use: locations add | list | remove")
    return 1


def _cmd_config(config: FrostConfig, args) -> int:
    if args.config_command == "show":
        print(redacted_json(config))
        return 0
    print("Use: config show")
    return 1
