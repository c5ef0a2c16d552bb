"""Terminal admin console for the identity core"""

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

import requests
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from identity.auth.service import AuthService, build_auth_service
from identity.store.schema import check_tables, ensure_tables
from identity.utils.config import config_manager
from identity.utils.exceptions import PeerAppError
from identity.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

console = Console()

DEFAULT_SERVER_URL = "http://127.0.0.1:8000"


def self_test(service: AuthService) -> Dict:
    """Check that every required table exists with its columns"""
    problems = check_tables(service.store, service.settings.store.employees_table)
    return {"ok": not problems, "problems": problems}


def render_self_test(result: Dict, out: Console) -> None:
    if result["ok"]:
        out.print(Panel("[green]All required tables are present.[/green]", title="Self-test"))
        return
    table = Table(title="Self-test problems", box=box.SIMPLE)
    table.add_column("Table", style="cyan")
    table.add_column("Problem", style="red")
    for name, issues in result["problems"].items():
        for issue in issues:
            table.add_row(name, issue)
    out.print(table)


def render_duplicates(table_name: str, duplicates: Dict[str, int], out: Console) -> None:
    if not duplicates:
        out.print(f"[green]No duplicate IDs in {table_name}.[/green]")
        return
    table = Table(title=f"Duplicate IDs in {table_name}", box=box.SIMPLE)
    table.add_column("ID", style="yellow")
    table.add_column("Count", justify="right")
    for identifier, count in duplicates.items():
        table.add_row(identifier, str(count))
    out.print(table)


def _post_json(http: Any, url: str, **kwargs) -> Dict[str, Any]:
    try:
        response = http.post(url, timeout=15, **kwargs)
    except requests.RequestException as e:
        raise PeerAppError(f"Identity server unreachable: {e}")
    try:
        body = response.json()
    except ValueError:
        body = {}
    if response.status_code >= 400:
        detail = body.get("detail") if isinstance(body, dict) else None
        raise PeerAppError(detail or f"HTTP {response.status_code}", status_code=response.status_code)
    return body


def clear_server_cache(
    server_url: str,
    token: Optional[str] = None,
    code: Optional[str] = None,
    password: Optional[str] = None,
    http: Any = None,
) -> int:
    """
    Ask the running identity server to drop its sessions and handshakes.

    The cache lives in the server process, so this goes through the admin
    endpoint. Authenticates with an admin session token, or logs in with
    code and password first. Returns the number of entries dropped.
    """
    http = http or requests.Session()
    base = server_url.rstrip("/")
    if not token:
        if not code or not password:
            raise PeerAppError("An admin token, or a code and password, is required")
        token = _post_json(http, f"{base}/auth/login", json={"code": code, "password": password})["token"]

    result = _post_json(
        http, f"{base}/api/admin/cache/clear", headers={"Authorization": f"Bearer {token}"}
    )
    logger.info("Server cache cleared", server=base, entries=result.get("entries"))
    return int(result.get("entries", 0))


def run(
    argv: Optional[List[str]] = None,
    service: Optional[AuthService] = None,
    out: Optional[Console] = None,
    http: Any = None,
) -> int:
    parser = argparse.ArgumentParser(prog="identity-admin", description="Identity core maintenance")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-tables", help="Create missing tables with their headers")
    sub.add_parser("self-test", help="Check required tables and columns")
    sub.add_parser("next-employee-code", help="Show the next free employee code")
    audit = sub.add_parser("audit-ids", help="List IDs that occur more than once")
    audit.add_argument("table")
    audit.add_argument("--column", default=None)
    clear = sub.add_parser("clear-cache", help="Drop all sessions and handshakes held by the running server")
    clear.add_argument("--server", default=os.getenv("IDENTITY_SERVER_URL", DEFAULT_SERVER_URL))
    clear.add_argument("--token", default=os.getenv("IDENTITY_ADMIN_TOKEN"))
    clear.add_argument("--code", default=None)
    clear.add_argument("--password", default=os.getenv("IDENTITY_ADMIN_PASSWORD"))
    args = parser.parse_args(argv)

    out = out or console

    if args.command == "clear-cache":
        try:
            dropped = clear_server_cache(args.server, args.token, args.code, args.password, http=http)
        except PeerAppError as e:
            out.print(f"[red]Cache clear failed:[/red] {e}")
            return 1
        out.print(f"Cache cleared ({dropped} entries).")
        return 0

    service = service or build_auth_service()

    if args.command == "init-tables":
        created = ensure_tables(service.store, service.settings.store.employees_table)
        out.print(f"Created tables: {', '.join(created)}" if created else "All tables already exist.")
        return 0

    if args.command == "self-test":
        result = self_test(service)
        render_self_test(result, out)
        return 0 if result["ok"] else 1

    if args.command == "next-employee-code":
        out.print(service.ids.next_employee_code())
        return 0

    # audit-ids
    duplicates = service.ids.find_duplicate_ids(args.table, args.column)
    render_duplicates(args.table, duplicates, out)
    return 1 if duplicates else 0


def main() -> None:
    settings = config_manager.settings
    setup_logging(
        level=settings.logging.level,
        fmt="console",
        file_path=settings.logging.file_path,
        max_bytes=settings.logging.max_bytes,
        backup_count=settings.logging.backup_count,
    )
    sys.exit(run())


if __name__ == "__main__":
    main()
