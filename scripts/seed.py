"""Seed helper that loads the demo records into one account."""

from __future__ import annotations

import argparse
import logging
import os

from records.config import ConfigError, get_log_level
from records.errors import AuthenticationError, RecordsError
from records.identity import SupabaseIdentityProvider
from records.seeding import clear_data, seed_demo_data
from records.stores import open_store


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo students, courses and enrollments")
    parser.add_argument(
        "--email",
        default=os.environ.get("SEED_EMAIL", ""),
        help="Account email (or set SEED_EMAIL)",
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("SEED_PASSWORD", ""),
        help="Account password (or set SEED_PASSWORD)",
    )
    parser.add_argument("--clear", action="store_true", help="Delete existing records first")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for enrollments")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=get_log_level(), format="%(levelname)s %(message)s")

    if not args.email or not args.password:
        print("Both --email and --password are required.")
        raise SystemExit(1)

    try:
        identity = SupabaseIdentityProvider()
        session = identity.sign_in(args.email, args.password)
        token = session["access_token"]
        tenant = identity.resolve(token)
        store = open_store(tenant, token)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        raise SystemExit(1)
    except AuthenticationError as exc:
        print(f"Sign-in failed: {exc}")
        raise SystemExit(1)

    try:
        if args.clear:
            clear_data(store)
        options = {} if args.seed is None else {"seed": args.seed}
        counts = seed_demo_data(store, **options)
    except RecordsError as exc:
        print(f"Seeding failed: {exc}")
        raise SystemExit(1)
    finally:
        store.close()

    print(
        f"Seeded {counts['students']} students, {counts['courses']} courses "
        f"and {counts['enrollments']} enrollments for {tenant.email or tenant.id}."
    )


if __name__ == "__main__":
    main()
