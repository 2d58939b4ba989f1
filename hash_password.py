#!/usr/bin/env python3
"""Print an Argon2 hash of the admin password for the ADMIN_PASSWORD setting."""
import argparse
import getpass
import sys

from elections.core.security import get_password_hash

MIN_LENGTH = 8


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("password", nargs="?", help="Prompted for when omitted")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Admin password: ")
    if len(password) < MIN_LENGTH:
        print(f"Error: password must be at least {MIN_LENGTH} characters long", file=sys.stderr)
        return 1

    print(f"ADMIN_PASSWORD={get_password_hash(password)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
