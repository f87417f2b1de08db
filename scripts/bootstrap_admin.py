#!/usr/bin/env python3
"""Create the first tenant and its admin user."""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from promocode.core.db import create_all, dispose_engine, get_session_factory  # noqa: E402
from promocode.schemas.tenants import TenantCreate  # noqa: E402
from promocode.services.tenants import TenantError, create_tenant  # noqa: E402
from promocode.services.users import UserError, register_user  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bootstrap tenant + admin user.")
    parser.add_argument("--tenant-name", required=True, help="Tenant name")
    parser.add_argument("--username", required=True, help="Admin username")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--email", help="Admin email")
    parser.add_argument("--create-schema", action="store_true", help="Create tables before seeding")
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    if args.create_schema:
        await create_all()

    async with get_session_factory()() as db:
        try:
            tenant = await create_tenant(db, TenantCreate(name=args.tenant_name), created_by="bootstrap")
            admin = await register_user(
                db,
                username=args.username,
                password=args.password,
                tenant_id=tenant.id,
                role="admin",
                email=args.email,
            )
        except (TenantError, UserError) as exc:
            print(str(exc))
            return 1

    print(f"Admin created: tenant={tenant.id} username={admin.username}")
    await dispose_engine()
    return 0


def main() -> int:
    return asyncio.run(_run(parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
