#!/usr/bin/env python3
"""
Command line front end for the expense API.

    python -m client.cli login you@example.com
    python -m client.cli add 250 Food "Lunch" 2024-03-01
    python -m client.cli list --category Food --sort date_asc
"""

import argparse
import getpass
import json
import sys

from client.api_client import ExpenseClient
from client.credentials import Credentials
from client.transport import ResilientTransport
from core.config import settings
from core.exceptions import ApiError, TransientFailure, Unauthenticated

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expenses", description="Personal expense ledger client")
    parser.add_argument("--url", default=settings.API_BASE_URL, help="API base URL")
    sub = parser.add_subparsers(dest="command", required=True)

    signup = sub.add_parser("signup")
    signup.add_argument("name")
    signup.add_argument("email")

    login = sub.add_parser("login")
    login.add_argument("email")

    sub.add_parser("logout")

    for name in ("list", "summary", "export"):
        cmd = sub.add_parser(name)
        cmd.add_argument("--category")
        cmd.add_argument("--start-date")
        cmd.add_argument("--end-date")
        if name == "list":
            cmd.add_argument("--search")
            cmd.add_argument("--sort", choices=["date_desc", "date_asc"], default="date_desc")
        if name == "summary":
            cmd.add_argument("--search")
        if name == "export":
            cmd.add_argument("--dir", default=".")

    add = sub.add_parser("add")
    add.add_argument("amount")
    add.add_argument("category")
    add.add_argument("description")
    add.add_argument("date")

    edit = sub.add_parser("edit")
    edit.add_argument("id")
    edit.add_argument("--amount")
    edit.add_argument("--category")
    edit.add_argument("--description")
    edit.add_argument("--date")

    delete = sub.add_parser("delete")
    delete.add_argument("id")

    return parser

def run(args, api: ExpenseClient):
    if args.command == "signup":
        return api.signup(args.name, args.email, getpass.getpass("Password: "))["user"]
    if args.command == "login":
        return api.login(args.email, getpass.getpass("Password: "))["user"]
    if args.command == "logout":
        api.logout()
        return {"message": "Logged out"}
    if args.command == "list":
        return api.list_expenses(args.category, args.sort, args.search, args.start_date, args.end_date)
    if args.command == "summary":
        return api.summary(args.category, args.search, args.start_date, args.end_date)
    if args.command == "export":
        api.export_csv(args.category, args.start_date, args.end_date, directory=args.dir)
        return {"message": f"Exported to {args.dir}"}
    if args.command == "add":
        return api.create_expense(args.amount, args.category, args.description, args.date)
    if args.command == "edit":
        updates = {
            field: getattr(args, field)
            for field in ("amount", "category", "description", "date")
            if getattr(args, field) is not None
        }
        return api.update_expense(args.id, **updates)
    if args.command == "delete":
        return api.delete_expense(args.id)
    raise ValueError(f"Unknown command: {args.command}")

def main(argv=None, api: ExpenseClient = None) -> int:
    args = build_parser().parse_args(argv)
    if api is None:
        credentials = Credentials.load(settings.CREDENTIALS_PATH)
        api = ExpenseClient(ResilientTransport(base_url=args.url, credentials=credentials))

    try:
        result = run(args, api)
    except Unauthenticated as e:
        print(f"{e.message} Run 'login' first.", file=sys.stderr)
        return 2
    except (ApiError, TransientFailure) as e:
        print(e.message, file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0

if __name__ == "__main__":
    sys.exit(main())
