# src/fare_gate/scripts/issue_token.py
"""Mint a bearer token for local development and smoke tests.

Production tokens come from the identity service; this only signs with the
local SECRET_KEY.
"""

import argparse

from fare_gate.core.security import SERVICE_ROLE, create_access_token


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("subject", help="Identity id to place in the sub claim")
    parser.add_argument("--service", action="store_true", help="Add the back-office role claim")
    args = parser.parse_args()

    claims = {"role": SERVICE_ROLE} if args.service else None
    print(create_access_token(args.subject, claims))


if __name__ == "__main__":
    main()
