#!/usr/bin/env python
"""
Studio Split database management

    python migrate.py up             create the database if missing, apply all revisions
    python migrate.py down [rev]     step back one revision (or to <rev>)
    python migrate.py reset          downgrade to base and upgrade to head again
    python migrate.py status         current revision and history
    python migrate.py new <message>  autogenerate a revision from the models
    python migrate.py wipe           drop every table, then apply all revisions
    python migrate.py create-db      MySQL only: CREATE DATABASE IF NOT EXISTS
"""
import os
import sys

from alembic import command
from alembic.config import Config
from sqlalchemy import MetaData, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ROOT)

from app.config import get_settings  # noqa: E402


def alembic_config() -> Config:
    return Config(os.path.join(ROOT, "alembic.ini"))


def up(*_):
    if not create_db():
        sys.exit(1)
    command.upgrade(alembic_config(), "head")
    print("[OK] database is at head")


def down(revision: str = "-1", *_):
    command.downgrade(alembic_config(), revision)
    print(f"[OK] downgraded ({revision})")


def reset(*_):
    cfg = alembic_config()
    command.downgrade(cfg, "base")
    command.upgrade(cfg, "head")
    print("[OK] schema rebuilt from base")


def status(*_):
    cfg = alembic_config()
    print("== current ==")
    command.current(cfg, verbose=True)
    print("\n== history ==")
    command.history(cfg, verbose=True)


def new(*words):
    if not words:
        print("[ERROR] usage: python migrate.py new <message>")
        sys.exit(2)
    message = " ".join(words)
    command.revision(alembic_config(), message=message, autogenerate=True)
    print(f"[OK] revision '{message}' written to migrations/versions")


def wipe(*_):
    engine = create_engine(get_settings().database_url)
    try:
        existing = MetaData()
        existing.reflect(bind=engine)
        names = [table.name for table in existing.sorted_tables]
        existing.drop_all(bind=engine)
    finally:
        engine.dispose()
    print(f"[OK] dropped {len(names)} tables: {', '.join(names) or '-'}")
    up()


def create_db(*_) -> bool:
    """SQLite creates its file on first connect, so only MySQL needs this."""
    url = make_url(get_settings().database_url)
    if not url.drivername.startswith("mysql"):
        return True

    server = create_engine(url.set(database=None))
    try:
        with server.connect() as conn:
            conn.execute(text(
                f"CREATE DATABASE IF NOT EXISTS `{url.database}` "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            ))
    except SQLAlchemyError as e:
        print(f"[ERROR] could not create database {url.database}: {e}")
        return False
    finally:
        server.dispose()

    print(f"[OK] database {url.database} ready")
    return True


COMMANDS = {
    "up": up,
    "down": down,
    "reset": reset,
    "status": status,
    "new": new,
    "wipe": wipe,
    "create-db": create_db,
}


def main(argv):
    if not argv or argv[0] not in COMMANDS:
        if argv:
            print(f"[ERROR] unknown command: {argv[0]}")
        print(__doc__)
        return 2

    result = COMMANDS[argv[0]](*argv[1:])
    return 1 if result is False else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
