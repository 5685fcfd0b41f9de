#!/usr/bin/env python3
from __future__ import annotations

import sys
from getpass import getpass

from traktdash import config
from traktdash.auth.credentials import set_record

FIELDS = {
    "login": "password",
    "rebuild": "full_rebuild_password",
}


def main() -> None:
    which = (sys.argv[1] if len(sys.argv) > 1 else "login").strip().lower()
    if which not in FIELDS:
        raise SystemExit(f"Usage: {sys.argv[0]} [login|rebuild]")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    if not pw1:
        raise SystemExit("Empty password")

    set_record(FIELDS[which], pw1)
    print(f"OK -> {config.auth_path()}")


if __name__ == "__main__":
    main()
