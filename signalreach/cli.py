"""
SignalReach command line.

Usage:
    signalreach serve --port 8080
    signalreach scrape
    signalreach config
    signalreach draft --post "Anyone tried switching CRMs?" --platform reddit --tone friendly
    signalreach workspace use ws_123 --token $ACCESS_TOKEN
"""

import argparse
import json
import sys

from signalreach.config import Settings, print_config, validate
from signalreach.errors import ConfigError, NotFoundError, SignalReachError
from signalreach.logging_config import setup_logging


def cmd_serve(args, settings: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "signalreach.api.app:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def cmd_scrape(args, settings: Settings) -> int:
    """Run the cron scrape once in-process and print the summary."""
    from signalreach.agents.scrape_runner import ScrapeRunner
    from signalreach.agents.scraper import RedditScraper, create_apify_client
    from signalreach.db.client import create_supabase_client
    from signalreach.db.signals import SignalRepository
    from signalreach.db.workspaces import WorkspaceRepository

    setup_logging(level=settings.log_level, fmt=settings.log_format, log_file=settings.log_file)
    client = create_supabase_client(settings.supabase_url, settings.supabase_key)
    scraper = RedditScraper(create_apify_client(settings.apify_token),
                            actor_id=settings.reddit_actor,
                            max_items=settings.scrape_max_items,
                            wait_secs=settings.scrape_wait_secs)
    runner = ScrapeRunner(WorkspaceRepository(client), SignalRepository(client), scraper,
                          max_workers=settings.scrape_max_workers,
                          dedupe=settings.scrape_dedupe)
    summary = runner.run()
    print(json.dumps(summary.to_response()))
    return 0 if summary.workspaces_failed == 0 else 1


def cmd_config(args, settings: Settings) -> int:
    print_config(settings)
    return 1 if validate(settings) else 0


def cmd_draft(args, settings: Settings) -> int:
    from signalreach.client import GatewayClient

    client = GatewayClient(args.gateway or f"http://localhost:{settings.port}")
    draft = client.generate_draft(args.post, args.platform, args.tone, args.instructions)
    print(draft)
    return 0


def cmd_workspace(args, settings: Settings) -> int:
    """Show, list or switch the active workspace remembered in the state file."""
    from signalreach.db.client import create_supabase_client
    from signalreach.db.workspaces import WorkspaceRepository
    from signalreach.session import identity_from_token
    from signalreach.workspace_resolver import (
        NeedsOnboarding, ResolveError, SelectionStore, WorkspaceResolver,
    )

    if not (settings.supabase_url and settings.supabase_key):
        raise ConfigError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set.")
    client = create_supabase_client(settings.supabase_url, settings.supabase_key)
    identity = identity_from_token(client.auth, args.token or settings.access_token)

    resolver = WorkspaceResolver(WorkspaceRepository(client), SelectionStore(settings.state_file))
    result = resolver.resolve(identity)
    if isinstance(result, ResolveError):
        print(f"Error: {result.detail}", file=sys.stderr)
        return 1
    if isinstance(result, NeedsOnboarding):
        print(f"No workspace yet. Finish onboarding at {settings.frontend_url}/welcome")
        return 1

    if args.action == "use":
        chosen = next((w for w in resolver.list_workspaces() if w["id"] == args.workspace_id), None)
        if chosen is None:
            raise NotFoundError("Workspace not found.")
        resolver.set_active_workspace(chosen)

    active_id = resolver.active_workspace["id"]
    if args.action == "list":
        for ws in resolver.list_workspaces():
            marker = "*" if ws["id"] == active_id else " "
            print(f"{marker} {ws['id']}  {ws.get('name') or ''}")
    else:
        print(json.dumps(resolver.active_workspace, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="signalreach", description="SignalReach gateway tools")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API gateway")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    serve.set_defaults(func=cmd_serve)

    scrape = sub.add_parser("scrape", help="Scrape every keyworded workspace once")
    scrape.set_defaults(func=cmd_scrape)

    config = sub.add_parser("config", help="Print the current configuration")
    config.set_defaults(func=cmd_config)

    draft = sub.add_parser("draft", help="Request one reply draft from a running gateway")
    draft.add_argument("--post", required=True, help="Text of the post to reply to")
    draft.add_argument("--platform", default="reddit")
    draft.add_argument("--tone", default="friendly")
    draft.add_argument("--instructions", default="")
    draft.add_argument("--gateway", default=None, help="Gateway base URL (default: localhost:PORT)")
    draft.set_defaults(func=cmd_draft)

    workspace = sub.add_parser("workspace", help="Show, list or switch the active workspace")
    workspace.add_argument("action", nargs="?", choices=("show", "list", "use"), default="show")
    workspace.add_argument("workspace_id", nargs="?", help="Workspace to make active (with use)")
    workspace.add_argument("--token", default=None,
                           help="Access token (default: SIGNALREACH_ACCESS_TOKEN)")
    workspace.set_defaults(func=cmd_workspace)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    try:
        return args.func(args, settings)
    except SignalReachError as e:
        print(f"Error: {e.public_message}", file=sys.stderr)
        if e.detail:
            print(f"  {e.detail}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
