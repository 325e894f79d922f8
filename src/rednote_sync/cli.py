"""Command-line front-end for rednote-sync.

Run ``rednote-sync --help`` for the command list.  Typical session::

    rednote-sync cookie set "a1=...; web_session=..."
    rednote-sync crawl --url "https://www.xiaohongshu.com/explore/abc123?xsec_token=..."
    rednote-sync count 露营 --start "2026-01-01 00:00:00" --end "2026-01-31 23:59:59"
    rednote-sync monitor add "https://www.xiaohongshu.com/explore/abc123?xsec_token=..."

``crawl`` runs the full crawl pipeline against an in-memory table seeded
with the url, streams the progress log to stderr and prints the resulting
row as JSON on stdout.

Exit codes:
    0: Success.
    1: Validation, network, backend or crawl failure.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from typing import Any

from rednote_sync import __version__
from rednote_sync.config.settings import Settings, get_settings
from rednote_sync.core.credentials import CookieSession, JsonFileCredentialStore
from rednote_sync.core.exceptions import RednoteSyncError
from rednote_sync.core.http import build_http_client
from rednote_sync.core.logging_config import configure_logging
from rednote_sync.core.progress import ProgressEntry, ProgressLevel, ProgressLog
from rednote_sync.orchestrator import CrawlOrchestrator, user_message
from rednote_sync.services.backend import (
    BackendServicesClient,
    build_request,
    monitor_cookie,
)
from rednote_sync.services.schemas import (
    CountNotesRequest,
    LowFanViralRequest,
    MonitorAddRequest,
)
from rednote_sync.services.timerange import build_time_range, format_ms
from rednote_sync.table.base import FieldType
from rednote_sync.table.fields import AVAILABLE_FIELDS, AVAILABLE_KEYS
from rednote_sync.table.memory import InMemoryTable

SOURCE_FIELD_NAME: str = "笔记链接"
CLI_RECORD_ID: str = "rec1"

_PROGRESS_MARKERS: dict[ProgressLevel, str] = {
    ProgressLevel.INFO: " ",
    ProgressLevel.HEARTBEAT: ".",
    ProgressLevel.SUCCESS: "+",
    ProgressLevel.FAILURE: "!",
}


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _print_progress(entry: ProgressEntry) -> None:
    print(f"{_PROGRESS_MARKERS[entry.level]} {entry.render()}", file=sys.stderr, flush=True)


def _mask(cookie: str) -> str:
    if len(cookie) <= 8:
        return "*" * len(cookie)
    return f"{cookie[:4]}...{cookie[-4:]} ({len(cookie)} chars)"


def _parse_keys(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    return [key.strip() for key in raw.split(",") if key.strip()]


def _session(settings: Settings, override: str | None = None) -> CookieSession:
    session = CookieSession(JsonFileCredentialStore(settings.cookie_store_path))
    if override:
        session.update(override)
    return session


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_cookie(args: argparse.Namespace, settings: Settings) -> int:
    session = _session(settings)
    if args.cookie_action == "set":
        changed = session.update(args.value)
        print("cookie saved" if changed else "cookie unchanged")
    elif args.cookie_action == "clear":
        session.clear()
        print("cookie cleared")
    else:
        print(_mask(session.cookie) if session.has_cookie else "(no cookie stored)")
    return 0


def cmd_fields(args: argparse.Namespace, settings: Settings) -> int:  # noqa: ARG001
    for declaration in AVAILABLE_FIELDS:
        print(f"{declaration.key:<12} {declaration.display_name}  ({declaration.declared_type.value})")
    return 0


async def cmd_crawl(args: argparse.Namespace, settings: Settings) -> int:
    session = _session(settings, args.cookie)

    table = InMemoryTable()
    source_id = table.create_field(FieldType.URL, SOURCE_FIELD_NAME)
    table.put(source_id, CLI_RECORD_ID, [{"type": "url", "text": args.url, "link": args.url}])
    table.select(CLI_RECORD_ID, source_id)

    log = ProgressLog()
    log.subscribe(_print_progress)

    async with build_http_client(settings.backend_api_base) as http:
        orchestrator = CrawlOrchestrator.from_settings(http, table, session, settings)
        outcome = await orchestrator.run_for_selection(keys=_parse_keys(args.fields), log=log)

    if not outcome.ok:
        print(f"error [{outcome.kind.value}]: {outcome.message}", file=sys.stderr)
        return 1
    _print_json(table.row(CLI_RECORD_ID))
    return 0


async def cmd_count(args: argparse.Namespace, settings: Settings) -> int:
    session = _session(settings, args.cookie)
    start_ms, end_ms = build_time_range(args.start, args.end)
    request = build_request(
        CountNotesRequest,
        keyword=args.keyword.strip(),
        cookies=session.cookie,
        start_time_ms=start_ms,
        end_time_ms=end_ms,
        note_type=args.note_type,
        page_size=args.page_size,
        max_pages=args.max_pages,
    )
    async with build_http_client(settings.backend_api_base) as http:
        result = await BackendServicesClient(http, settings).count_notes_by_time_range(request)
    if isinstance(result, dict) and "oldest_time_seen_ms" in result:
        result = {**result, "oldest_time_seen": format_ms(result["oldest_time_seen_ms"])}
    _print_json(result)
    return 0


async def cmd_low_fan(args: argparse.Namespace, settings: Settings) -> int:
    session = _session(settings, args.cookie)
    request = build_request(
        LowFanViralRequest,
        keyword=args.keyword.strip(),
        cookies=session.cookie,
        like_threshold=args.like_threshold,
        fan_threshold=args.fan_threshold,
        sort=args.sort,
        note_type=args.note_type,
        page_size=args.page_size,
        max_results=args.max_results,
        concurrency=args.concurrency,
        cache_ttl_seconds=args.cache_ttl,
    )
    async with build_http_client(settings.backend_api_base) as http:
        result = await BackendServicesClient(http, settings).low_fan_viral(request)
    _print_json(result)
    return 0


async def cmd_compliance(args: argparse.Namespace, settings: Settings) -> int:
    session = _session(settings, args.cookie)
    async with build_http_client(settings.backend_api_base) as http:
        client = BackendServicesClient(http, settings)
        request = client.compliance_request(
            text=args.text or "",
            xhs_note_url=(args.note_url or "").strip(),
            cookies=session.cookie,
            severity_threshold=args.severity,
            enable_ai=args.ai,
        )
        result = await client.compliance_check(request)
    final = result.get("final") if isinstance(result, dict) else None
    if isinstance(final, dict):
        verdict = "PASSED" if final.get("passed") else "FAILED"
        categories = ", ".join(final.get("categories") or []) or "-"
        print(f"{verdict} risk_level={final.get('risk_level', '-')} categories={categories}", file=sys.stderr)
    _print_json(result)
    return 0


async def _find_monitor_item(client: BackendServicesClient, note_id: str) -> dict[str, Any] | None:
    for item in await client.monitor_list():
        if item.get("note_id") == note_id:
            return item
    return None


async def cmd_monitor(args: argparse.Namespace, settings: Settings) -> int:
    session = _session(settings, args.cookie)
    async with build_http_client(settings.backend_api_base) as http:
        client = BackendServicesClient(http, settings)
        action = args.monitor_action

        if action == "add":
            request = build_request(
                MonitorAddRequest,
                note_url=args.note_url.strip(),
                cookies=session.cookie,
                like_growth_threshold=args.like_threshold,
                comment_growth_threshold=args.comment_threshold,
                check_interval_minutes=args.interval,
                initialize_baseline=not args.no_baseline,
            )
            result: Any = await client.monitor_add_note(request)
        elif action == "list":
            result = await client.monitor_list()
        elif action == "delete":
            result = await client.monitor_delete_note(args.note_id)
        else:
            item = await _find_monitor_item(client, args.note_id)
            if action == "toggle":
                if item is None:
                    print(f"error: note {args.note_id} is not monitored", file=sys.stderr)
                    return 1
                result = await client.monitor_toggle(item)
            else:
                cookie = monitor_cookie(session.cookie, item)
                if action == "check":
                    result = await client.monitor_check_now(args.note_id, cookie)
                    print(
                        f"likes +{result.get('delta_likes', 0)} "
                        f"comments +{result.get('delta_comments', 0)}",
                        file=sys.stderr,
                    )
                else:
                    result = await client.monitor_reset_baseline(args.note_id, cookie)
    _print_json(result)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rednote-sync",
        description="Crawl RedNote notes into a table and call the auxiliary backend services.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...).")
    sub = parser.add_subparsers(dest="command", required=True)

    cookie_parent = argparse.ArgumentParser(add_help=False)
    cookie_parent.add_argument(
        "--cookie", default=None, help="Use and persist this cookie instead of the stored one."
    )

    p_cookie = sub.add_parser("cookie", help="Manage the stored RedNote cookie.")
    cookie_sub = p_cookie.add_subparsers(dest="cookie_action", required=True)
    p_set = cookie_sub.add_parser("set", help="Store a cookie.")
    p_set.add_argument("value")
    cookie_sub.add_parser("show", help="Show the stored cookie (masked).")
    cookie_sub.add_parser("clear", help="Forget the stored cookie.")
    p_cookie.set_defaults(handler=cmd_cookie)

    p_fields = sub.add_parser("fields", help="List the fields that can be written back.")
    p_fields.set_defaults(handler=cmd_fields)

    p_crawl = sub.add_parser("crawl", parents=[cookie_parent], help="Crawl one note url.")
    p_crawl.add_argument("--url", required=True, help="Note url (.../explore/<id>?xsec_token=...).")
    p_crawl.add_argument(
        "--fields",
        default=None,
        help=f"Comma-separated keys to write (default: all of {','.join(AVAILABLE_KEYS)}).",
    )
    p_crawl.set_defaults(handler=cmd_crawl)

    p_count = sub.add_parser(
        "count", parents=[cookie_parent], help="Count notes for a keyword in a time range."
    )
    p_count.add_argument("keyword")
    p_count.add_argument("--start", required=True, help="Start time or 13-digit ms timestamp.")
    p_count.add_argument("--end", required=True, help="End time or 13-digit ms timestamp.")
    p_count.add_argument("--note-type", default="all", choices=["all", "video", "image"])
    p_count.add_argument("--page-size", type=int, default=20)
    p_count.add_argument("--max-pages", type=int, default=10)
    p_count.set_defaults(handler=cmd_count)

    p_low = sub.add_parser(
        "low-fan", parents=[cookie_parent], help="Find viral notes from low-follower creators."
    )
    p_low.add_argument("keyword")
    p_low.add_argument("--like-threshold", type=int, default=1000)
    p_low.add_argument("--fan-threshold", type=int, default=2000)
    p_low.add_argument(
        "--sort",
        default="general",
        choices=[
            "general",
            "popularity",
            "most_popular",
            "latest",
            "popularity_descending",
            "time_descending",
        ],
    )
    p_low.add_argument("--note-type", default="all", choices=["all", "video", "image"])
    p_low.add_argument("--page-size", type=int, default=20)
    p_low.add_argument("--max-results", type=int, default=60)
    p_low.add_argument("--concurrency", type=int, default=5)
    p_low.add_argument("--cache-ttl", type=int, default=86400)
    p_low.set_defaults(handler=cmd_low_fan)

    p_comp = sub.add_parser(
        "compliance", parents=[cookie_parent], help="Check text or a note for compliance risks."
    )
    p_comp.add_argument("--text", default="")
    p_comp.add_argument("--note-url", default="")
    p_comp.add_argument("--severity", type=int, default=3, choices=range(1, 6))
    p_comp.add_argument("--ai", action="store_true", help="Also run the AI review.")
    p_comp.set_defaults(handler=cmd_compliance)

    p_mon = sub.add_parser("monitor", parents=[cookie_parent], help="Manage engagement monitors.")
    mon_sub = p_mon.add_subparsers(dest="monitor_action", required=True)
    p_add = mon_sub.add_parser("add", help="Start monitoring a note.")
    p_add.add_argument("note_url")
    p_add.add_argument("--like-threshold", type=int, default=100)
    p_add.add_argument("--comment-threshold", type=int, default=20)
    p_add.add_argument("--interval", type=int, default=120, help="Minutes between checks.")
    p_add.add_argument("--no-baseline", action="store_true", help="Do not record a baseline now.")
    mon_sub.add_parser("list", help="List monitored notes.")
    for action, help_text in (
        ("check", "Check a note now."),
        ("reset", "Reset a note's baseline."),
        ("delete", "Stop monitoring a note."),
        ("toggle", "Pause or resume a note."),
    ):
        mon_sub.add_parser(action, help=help_text).add_argument("note_id")
    p_mon.set_defaults(handler=cmd_monitor)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    try:
        result = args.handler(args, settings)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
    except RednoteSyncError as exc:
        print(f"error [{exc.kind.value}]: {user_message(exc)}", file=sys.stderr)
        return 1
    return int(result)


if __name__ == "__main__":
    sys.exit(main())
