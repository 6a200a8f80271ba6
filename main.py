#!/usr/bin/env python3
"""
LSA portal auth -- provisioning CLI for local development.

Stands in for the registration and approval flows (owned by other
subsystems) so the auth service can be exercised end to end.

Usage:
  python main.py init-db
  python main.py create-tenant "Ocean Breeze Spa" --status pending
  python main.py set-status 1 approved
  python main.py create-admin spa1 --role admin_spa --spa-id 1 --password s3cret
  python main.py create-admin lsa --role admin_lsa --password s3cret
  python main.py create-admin legacy --role admin_spa --spa-id 1 --password plain --legacy-plaintext
  python main.py hash-secret s3cret
  python main.py check-status 1

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the portal database (default: ./lsaportal.db)
"""

import argparse
import json
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.credentials import hash_secret
from auth.models import AdminIdentity, Role, is_tenant_scoped
from auth.store import AdminStore
from core.db import make_engine
from core.errors import TenantResolutionError
from tenants.models import TenantRecord, TenantStatus
from tenants.resolver import TenantStatusResolver
from tenants.store import TenantStore


def _database_url(explicit: Optional[str]) -> str:
    if explicit:
        return explicit
    from core.config import get_settings

    return get_settings().database_url


def _cmd_init_db(admins: AdminStore, spas: TenantStore, args: argparse.Namespace) -> int:
    # Constructing the stores already created the tables.
    print("  Database initialized.")
    return 0


def _cmd_create_tenant(admins: AdminStore, spas: TenantStore, args: argparse.Namespace) -> int:
    spa_id = spas.create_tenant(TenantRecord(name=args.name, status=args.status))
    print(f"  Created spa {spa_id} ({args.name}, {args.status}).")
    return 0


def _cmd_set_status(admins: AdminStore, spas: TenantStore, args: argparse.Namespace) -> int:
    if not spas.set_status(args.spa_id, args.status):
        print(f"  [!] No spa with id {args.spa_id}.")
        return 1
    print(f"  Spa {args.spa_id} is now {args.status}.")
    return 0


def _cmd_create_admin(admins: AdminStore, spas: TenantStore, args: argparse.Namespace) -> int:
    if is_tenant_scoped(args.role) and args.spa_id is None:
        print(f"  [!] Role {args.role} requires --spa-id.")
        return 1
    stored = args.password if args.legacy_plaintext else hash_secret(args.password)
    identity = AdminIdentity(
        login_name=args.username,
        role=args.role,
        email=args.email,
        full_name=args.full_name,
        tenant_id=args.spa_id,
    )
    try:
        user_id = admins.create_identity(identity, stored)
    except IntegrityError:
        print(f"  [!] Username '{args.username}' already exists.")
        return 1
    note = " (legacy plaintext secret)" if args.legacy_plaintext else ""
    print(f"  Created {args.role} '{args.username}' with id {user_id}{note}.")
    return 0


def _cmd_hash_secret(admins: AdminStore, spas: TenantStore, args: argparse.Namespace) -> int:
    print(hash_secret(args.secret))
    return 0


def _cmd_check_status(admins: AdminStore, spas: TenantStore, args: argparse.Namespace) -> int:
    try:
        policy = TenantStatusResolver(spas).resolve(args.spa_id)
    except TenantResolutionError as exc:
        print(f"  [!] Cannot resolve spa {args.spa_id}: {exc.code}")
        return 1
    print(json.dumps({**policy.status_info(), "allowedTabs": list(policy.allowed_tabs)}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lsa-portal-auth",
        description="Provision spas and admin accounts for the LSA portal auth service.",
    )
    parser.add_argument("--db-url", metavar="URL", help="SQLAlchemy database URL (default: DATABASE_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create the tables if they do not exist")
    p.set_defaults(func=_cmd_init_db)

    p = sub.add_parser("create-tenant", help="Register a spa")
    p.add_argument("name")
    p.add_argument("--status", choices=[s.value for s in TenantStatus], default=TenantStatus.pending.value)
    p.set_defaults(func=_cmd_create_tenant)

    p = sub.add_parser("set-status", help="Move a spa to another lifecycle status")
    p.add_argument("spa_id", type=int)
    p.add_argument("status", choices=[s.value for s in TenantStatus])
    p.set_defaults(func=_cmd_set_status)

    p = sub.add_parser("create-admin", help="Create an admin account")
    p.add_argument("username")
    p.add_argument("--role", choices=[r.value for r in Role], required=True)
    p.add_argument("--password", required=True)
    p.add_argument("--spa-id", type=int, default=None)
    p.add_argument("--email", default=None)
    p.add_argument("--full-name", default=None)
    p.add_argument(
        "--legacy-plaintext",
        action="store_true",
        help="Store the password unhashed, reproducing an account that predates hashing",
    )
    p.set_defaults(func=_cmd_create_admin)

    p = sub.add_parser("hash-secret", help="Print a bcrypt hash for a plaintext secret")
    p.add_argument("secret")
    p.set_defaults(func=_cmd_hash_secret)

    p = sub.add_parser("check-status", help="Print the access policy a spa currently resolves to")
    p.add_argument("spa_id", type=int)
    p.set_defaults(func=_cmd_check_status)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    engine = make_engine(_database_url(args.db_url))
    admins = AdminStore(engine=engine)
    spas = TenantStore(engine=engine)
    try:
        return args.func(admins, spas, args)
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
