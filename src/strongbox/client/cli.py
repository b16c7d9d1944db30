"""Strongbox command-line client.

Usage:
  strongbox-client auth register alice alice@example.com s3cret
  strongbox-client auth login alice s3cret
  strongbox-client data add bank alice hunter2 --metadata '{"url": "https://bank.example"}'
  strongbox-client data list
  strongbox-client data update <ID> --password newpass
  strongbox-client data delete <ID>
  strongbox-client auth logout

The session token is kept in ~/.strongbox/token.json (mode 0600).
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .. import __version__
from .client import DEFAULT_SERVER, ClientError, StrongboxClient

DEFAULT_TOKEN_FILE = Path.home() / ".strongbox" / "token.json"


# ── Token file ──────────────────────────────────────────────────────────────

def load_session(path: Path) -> Optional[Dict[str, Any]]:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"[WARN] Ignoring unreadable token file {path}: {e}", file=sys.stderr)
        return None


def save_session(path: Path, server: str, token: str, username: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # created owner-only; an existing file keeps its inode, so tighten it too
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump({
            "server": server,
            "token": token,
            "username": username,
        }, f, indent=2)


def clear_session(path: Path) -> bool:
    if path.exists():
        path.unlink()
        return True
    return False


def build_client(server: str, token: Optional[str] = None) -> StrongboxClient:
    return StrongboxClient(server, token=token)


def _parse_metadata(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ClientError(400, f"--metadata is not valid JSON: {e}") from e


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


# ── Commands ────────────────────────────────────────────────────────────────

def _run_auth(args, server: str, token_file: Path) -> int:
    if args.action == "logout":
        if clear_session(token_file):
            print("[OK] Logged out")
        else:
            print("[OK] No active session")
        return 0

    with build_client(server) as client:
        if args.action == "register":
            result = client.register(args.username, args.email, args.password)
        else:
            result = client.login(args.username, args.password)

    save_session(token_file, server, result["token"], result["user"]["username"])
    print(f"[OK] Logged in as {result['user']['username']} (token saved to {token_file})")
    return 0


def _run_data(args, server: str, token_file: Path) -> int:
    session = load_session(token_file)
    if not session or not session.get("token"):
        print("[ERROR] Not logged in. Run: strongbox-client auth login USER PASSWORD",
              file=sys.stderr)
        return 1

    with build_client(server, token=session["token"]) as client:
        if args.action == "list":
            _print_json(client.list_records())
        elif args.action == "get":
            _print_json(client.get_record(args.id))
        elif args.action == "add":
            _print_json(client.create_record(
                args.name, args.login, args.password,
                metadata=_parse_metadata(args.metadata),
            ))
        elif args.action == "update":
            _print_json(client.update_record(
                args.id,
                name=args.name or "",
                login=args.login or "",
                password=args.password or "",
                metadata=_parse_metadata(args.metadata),
            ))
        elif args.action == "delete":
            client.delete_record(args.id)
            print(f"[OK] Deleted {args.id}")
    return 0


# ── CLI ──────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strongbox-client",
        description="Strongbox client - manage your stored credentials",
    )
    parser.add_argument("--server", default=None,
                        help=f"Server URL (default: $STRONGBOX_SERVER or {DEFAULT_SERVER})")
    parser.add_argument("--token-file", type=Path, default=None,
                        help=f"Session token file (default: {DEFAULT_TOKEN_FILE})")
    sub = parser.add_subparsers(dest="command", required=True)

    # auth
    auth = sub.add_parser("auth", help="Register, log in or log out")
    auth_sub = auth.add_subparsers(dest="action", required=True)
    reg = auth_sub.add_parser("register", help="Create an account")
    reg.add_argument("username")
    reg.add_argument("email")
    reg.add_argument("password")
    login = auth_sub.add_parser("login", help="Log in and save the session token")
    login.add_argument("username")
    login.add_argument("password")
    auth_sub.add_parser("logout", help="Forget the saved session token")

    # data
    data = sub.add_parser("data", help="Manage stored records")
    data_sub = data.add_subparsers(dest="action", required=True)
    data_sub.add_parser("list", help="List your records")
    get = data_sub.add_parser("get", help="Show one record")
    get.add_argument("id")
    add = data_sub.add_parser("add", help="Store a new record")
    add.add_argument("name")
    add.add_argument("login")
    add.add_argument("password")
    add.add_argument("--metadata", default=None, help="JSON metadata")
    upd = data_sub.add_parser("update", help="Change fields of a record")
    upd.add_argument("id")
    upd.add_argument("--name")
    upd.add_argument("--login")
    upd.add_argument("--password")
    upd.add_argument("--metadata", default=None, help="JSON metadata (replaces existing)")
    delete = data_sub.add_parser("delete", help="Delete a record")
    delete.add_argument("id")

    sub.add_parser("version", help="Print the client version")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "version":
        print(f"strongbox-client v{__version__}")
        return 0

    server = (args.server or os.environ.get("STRONGBOX_SERVER") or DEFAULT_SERVER).rstrip("/")
    token_file = args.token_file or DEFAULT_TOKEN_FILE

    try:
        if args.command == "auth":
            return _run_auth(args, server, token_file)
        return _run_data(args, server, token_file)
    except ClientError as e:
        print(f"[ERROR] {e.message} (status {e.status_code})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
