"""Utility script to mint a bearer token for an existing user.

Handy when connecting a websocket client to ``/notifications/ws`` by hand.
"""

from __future__ import annotations

import argparse
from datetime import timedelta

from goalmates.infrastructure.database import SessionLocal, initialize_database
from goalmates.infrastructure.repositories import UserRepository
from goalmates.infrastructure.security import create_user_token


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Issue an access token for a GoalMates user.",
    )
    parser.add_argument("user_id", type=int, help="Identifier of the user")
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    initialize_database()

    session = SessionLocal()
    try:
        user = UserRepository(session).get(args.user_id)
    finally:
        session.close()

    if user is None:
        raise SystemExit(f"User {args.user_id} does not exist.")

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_user_token(user.id, expires))


if __name__ == "__main__":
    main()
