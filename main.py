#!/usr/bin/env python3
"""Afterlink CLI."""

import argparse
import json
import logging
import sys

from config.settings import Settings
from orchestrator import AfterlinkOrchestrator
from protocol.client import AfterlinkClient
from protocol.session import ArticleQuestionSession
from schemas.insights import ContactInfo
from schemas.scoring import LeadInput
from transport.local import LocalChatTransport
from utils.exceptions import AfterlinkError
from utils.text import extract_question_markers, paragraph_for_phrase


def build_client(settings: Settings, local: bool) -> AfterlinkClient:
    """Client over the hosted chat API, or over an in-process backend."""
    if not local:
        return AfterlinkClient.from_settings(settings)

    orchestrator = AfterlinkOrchestrator(settings=settings)
    transport = LocalChatTransport(orchestrator.handle_message)
    return AfterlinkClient(
        transport,
        poll_interval=0.0,
        max_attempts=settings.poll_max_attempts,
        min_length=settings.min_response_length
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def cmd_search(client: AfterlinkClient, args) -> None:
    _print_json([a.to_wire() for a in client.search(args.query)])


def cmd_article(client: AfterlinkClient, args) -> None:
    article = client.get_article(args.title)
    print(f"# {article.title} (id {article.id})\n")
    print(article.content)
    markers = extract_question_markers(article.content)
    if markers:
        print("\nQuestions:")
        for phrase in markers:
            print(f"  - {phrase}")


def cmd_get_article(client: AfterlinkClient, args) -> None:
    article = client.get_stored_article(args.id)
    print(f"# {article.title} (id {article.id})\n")
    print(article.content)


def cmd_ask(client: AfterlinkClient, args) -> None:
    """Interactive question session anchored to a paragraph of an article."""
    article = client.get_stored_article(args.id)
    paragraph = paragraph_for_phrase(article.content, args.question) or ""

    contact_info = None
    if args.name and args.contact:
        preference = "email" if "@" in args.contact else "phone"
        contact_info = ContactInfo(
            user_name=args.name, contact_preference=preference, value=args.contact
        )

    session = ArticleQuestionSession(
        client,
        article_title=article.title,
        paragraph_context=paragraph,
        contact_info=contact_info,
        reuse_channel=args.reuse_channel
    )
    print(f"[session {session.session_user_id}]")

    text = args.question
    while text:
        print(f"\n> {text}")
        print(session.ask(text))
        try:
            text = input("\nyou (empty to stop): ").strip()
        except EOFError:
            break


def cmd_insights(client: AfterlinkClient, args) -> None:
    _print_json([i.to_wire() for i in client.get_insights()])


def cmd_match_icp(client: AfterlinkClient, args) -> None:
    leads = [
        LeadInput(session_user_id=i.session_user_id, insight=i.insight)
        for i in client.get_insights()
    ]
    if not leads:
        print("No leads to score.")
        return
    scores = client.match_icp(args.icp, leads)
    for score in scores:
        print(f"{score.score:>3}  {score.session_user_id}  {score.reason}")
        if args.verbose:
            for name, dim in score.breakdown.items():
                print(f"       {name:<10} {dim.points:>5}/{dim.max_points:<3} {dim.detail}")


def cmd_clear(client: AfterlinkClient, args) -> None:
    status = client.clear_articles()
    print(status.message or ("Cleared" if status.success else "Failed"))


def cmd_seed(client: AfterlinkClient, args) -> None:
    status = client.seed_mock_data()
    print(status.message or ("Seeded" if status.success else "Failed"))


COMMANDS = {
    "search": cmd_search,
    "article": cmd_article,
    "get-article": cmd_get_article,
    "ask": cmd_ask,
    "insights": cmd_insights,
    "match-icp": cmd_match_icp,
    "clear": cmd_clear,
    "seed": cmd_seed,
}


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Afterlink - articles with embedded questions that turn readers into leads"
    )
    parser.add_argument(
        "--local",
        action="store_true",
        help="Run the backend in-process instead of using the hosted chat API"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="SQLite database path for --local (default: data/afterlink.db)"
    )
    parser.add_argument(
        "--provider",
        type=str,
        choices=["openai", "anthropic"],
        default="openai",
        help="LLM provider for --local (default: openai)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Search articles")
    search.add_argument("query", type=str)

    article = subparsers.add_parser("article", help="Generate or fetch an article by title")
    article.add_argument("title", type=str)

    get_article = subparsers.add_parser("get-article", help="Fetch a stored article by id")
    get_article.add_argument("id", type=int)

    ask = subparsers.add_parser("ask", help="Ask a question about a stored article")
    ask.add_argument("id", type=int, help="Stored article id")
    ask.add_argument("question", type=str, help="Opening question (usually a marker phrase)")
    ask.add_argument("--name", type=str, help="Reader name for contact capture")
    ask.add_argument("--contact", type=str, help="Reader email or phone")
    ask.add_argument(
        "--reuse-channel",
        action="store_true",
        help="Send every turn on one conversation channel"
    )

    subparsers.add_parser("insights", help="List lead insights")

    match_icp = subparsers.add_parser("match-icp", help="Score all leads against an ICP")
    match_icp.add_argument("icp", type=str, help="Ideal customer profile description")

    subparsers.add_parser("clear", help="Delete all articles and insights")
    subparsers.add_parser("seed", help="Load sample lead insights")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Create settings
    overrides = {"llm_provider": args.provider, "verbose": args.verbose}
    if args.db_path:
        overrides["db_path"] = args.db_path
    settings = Settings(**overrides)

    try:
        with build_client(settings, args.local) as client:
            COMMANDS[args.command](client, args)
    except (AfterlinkError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
