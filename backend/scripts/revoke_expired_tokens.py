"""Script to revoke expired access tokens outside the running server"""
import argparse
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from opauth.repositories.mongo_client import create_indexes, close_connection
from opauth.repositories.access_token_repo import AccessTokenRepository
from opauth.utils.time import utc_now


def main():
    parser = argparse.ArgumentParser(description="Revoke expired access tokens")
    parser.add_argument("--target", help="Only revoke tokens guarding this target id")
    parser.add_argument(
        "--skip-indexes",
        action="store_true",
        help="Do not (re)create the access token indexes first"
    )
    args = parser.parse_args()

    try:
        if not args.skip_indexes:
            create_indexes()
            print("Indexes ensured")

        repo = AccessTokenRepository()
        revoked = repo.revoke_expired(utc_now(), target_id=args.target)
        print(f"Total revoked: {revoked}")
    finally:
        close_connection()


if __name__ == "__main__":
    main()
