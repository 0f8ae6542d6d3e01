#!/usr/bin/env python3
"""Bootstrap a super admin account; no public endpoint can create one."""

from __future__ import annotations

import argparse
import asyncio
import getpass

from carelink.database import async_session_maker
from carelink.models import ApprovalStatus, UserRole
from carelink.services.errors import ConflictError
from carelink.services.identity import LocalIdentityProvider
from carelink.services.store import ClinicStore, SQLClinicStore


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create a super admin account with an approved profile."
    )
    parser.add_argument("--email", required=True, help="Login e-mail of the super admin.")
    parser.add_argument("--full-name", required=True, help="Display name.")
    parser.add_argument(
        "--password",
        help="Password (minimum 8 characters). Prompted for when omitted.",
    )
    parser.add_argument(
        "--promote",
        action="store_true",
        help="Promote the account to super admin if the e-mail is already registered.",
    )
    return parser.parse_args()


async def create_superadmin(
    store: ClinicStore,
    *,
    email: str,
    password: str,
    full_name: str,
    promote: bool = False,
):
    """Create (or with ``promote`` upgrade) the account and its approved profile."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    identity = LocalIdentityProvider(store)
    fields = {
        "role": UserRole.super_admin.value,
        "approval_status": ApprovalStatus.approved.value,
    }
    try:
        account = await identity.create_account(
            email, password, {"full_name": full_name, "role": UserRole.super_admin.value}
        )
    except ConflictError:
        if not promote:
            raise
        account = await store.get_account_by_email(email)
        if await store.get_profile(account.id) is not None:
            await store.update_profile(account.id, **fields)
            return account
    await store.insert_profile(account.id, full_name=full_name, **fields)
    return account


async def _main_async() -> int:
    args = _parse_args()
    password = args.password or getpass.getpass("Password: ")
    async with async_session_maker() as session:
        try:
            account = await create_superadmin(
                SQLClinicStore(session),
                email=args.email,
                password=password,
                full_name=args.full_name,
                promote=args.promote,
            )
        except ConflictError:
            print(f"{args.email} is already registered; re-run with --promote to upgrade it.")
            return 1
        except ValueError as exc:
            print(str(exc))
            return 2
    print(f"Super admin ready: {account.email} ({account.id})")
    return 0


def main() -> int:
    return asyncio.run(_main_async())


if __name__ == "__main__":
    raise SystemExit(main())
