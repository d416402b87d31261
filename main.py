"""CLI entry point for the recruiting intake agent."""

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from src.catalog.loader import JobCatalog
from src.conversation.business_hours import BusinessHours
from src.conversation.operator import OperatorControl
from src.conversation.router import ConversationRouter
from src.conversation.store import ConversationStore
from src.core.config import Settings
from src.core.schemas import CandidateProfile
from src.pipeline.formatter import compose_candidate_reply
from src.pipeline.scorer import find_matching_jobs
from src.profile.assistant import RecruitingAssistant
from src.profile.llm import available_providers, get_provider
from src.transport.base import TransportError
from src.transport.console import ConsoleTransport
from src.transport.factory import TransportFactory

logger = logging.getLogger(__name__)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recruiting intake agent - classify contacts and match candidates to jobs",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- run subcommand (default) ---
    run_parser = subparsers.add_parser("run", help="Start the chat assistant")
    _add_common(run_parser)
    run_parser.add_argument(
        "--provider",
        choices=available_providers(),
        help="Override the LLM provider from settings",
    )

    # --- match subcommand ---
    match_parser = subparsers.add_parser(
        "match",
        help="Score the catalog against a candidate message (no LLM)",
    )
    _add_common(match_parser)
    match_parser.add_argument("message", help="Candidate message text")
    match_parser.add_argument("--name", help="Candidate name")
    match_parser.add_argument("--skills", help="Comma-separated skills")
    match_parser.add_argument("--experience", help="Experience text, e.g. '3 anos'")
    match_parser.add_argument("--location", help="Candidate city")
    match_parser.add_argument("--position", help="Current position")

    # --- stats subcommand ---
    stats_parser = subparsers.add_parser("stats", help="Show persisted conversation stats")
    _add_common(stats_parser)

    # --- notifications subcommand ---
    notif_parser = subparsers.add_parser("notifications", help="List operator notifications")
    _add_common(notif_parser)
    notif_parser.add_argument("--category", help="Filter by category (company, candidate, other)")
    notif_parser.add_argument("--unread", action="store_true", help="Only unread notifications")
    notif_parser.add_argument(
        "--mark-read",
        action="store_true",
        help="Mark the listed notifications as read",
    )

    # --- backward compat: top-level flags for run ---
    parser.add_argument("--config", default="config/settings.yaml", help=argparse.SUPPRESS)
    parser.add_argument("--verbose", "-v", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--provider", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)

    # Default to run when no subcommand given
    if args.command is None:
        args.command = "run"

    return args


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


async def run(settings: Settings, provider_name: str | None) -> None:
    """Run the assistant on the configured transport until input ends."""
    catalog = JobCatalog.from_csv(settings.catalog.path)
    store = ConversationStore.open(settings.database.path, settings.conversation.max_history)
    provider = get_provider(
        provider_name or settings.llm.provider,
        temperature=settings.llm.temperature,
        max_tokens=settings.llm.max_tokens,
    )
    assistant = RecruitingAssistant(provider, settings.company, model=settings.llm.model)
    router = ConversationRouter(
        settings,
        catalog,
        assistant,
        store,
        business_hours=BusinessHours(settings.business_hours, settings.company),
    )
    operator = OperatorControl(router)
    factory = TransportFactory(settings.transport)

    transport = await factory.connect()
    print(f"Assistant ready: {len(catalog)} jobs, LLM provider '{provider.provider_id}'.")
    try:
        while True:
            if isinstance(transport, ConsoleTransport):
                transport.on_command = operator.dispatch
            try:
                await router.serve(transport)
                break
            except TransportError:
                logger.warning("Transport failed, reconnecting", exc_info=True)
                transport = await factory.reconnect()
    finally:
        await router.close()
        await transport.close()
        store.close()


def cmd_match(args: argparse.Namespace, settings: Settings) -> None:
    """Handle match subcommand."""
    catalog = JobCatalog.from_csv(settings.catalog.path)
    profile = CandidateProfile(
        name=args.name,
        skills=args.skills,
        experience=args.experience,
        location=args.location,
        current_position=args.position,
    )
    jobs = find_matching_jobs(catalog, profile, args.message)
    print(compose_candidate_reply(jobs, profile, settings.company.registration_link))


def cmd_stats(settings: Settings) -> None:
    """Handle stats subcommand."""
    store = ConversationStore.open(settings.database.path)
    try:
        output = {
            "conversations": store.stats(),
            "company_messages": store.company_message_stats(),
        }
    finally:
        store.close()
    print(json.dumps(output, ensure_ascii=False, indent=2))


def cmd_notifications(args: argparse.Namespace, settings: Settings) -> None:
    """Handle notifications subcommand."""
    store = ConversationStore.open(settings.database.path)
    try:
        rows = store.notifications(category=args.category, unread_only=args.unread)
        for row in rows:
            flag = " " if row["is_read"] else "*"
            print(f"{flag} #{row['id']} [{row['category']}] {row['created_at']} {row['title']}")
            print(f"    {row['body']}")
        if args.mark_read and rows:
            changed = store.mark_notifications_read([row["id"] for row in rows])
            print(f"Marked {changed} notifications as read.")
        if not rows:
            print("No notifications.")
    finally:
        store.close()


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "match":
            cmd_match(args, settings)
        elif args.command == "stats":
            cmd_stats(settings)
        elif args.command == "notifications":
            cmd_notifications(args, settings)
        else:
            asyncio.run(run(settings, args.provider))
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.")


if __name__ == "__main__":
    main()
