#!/usr/bin/env python
# scripts/manage_db.py

"""
Database management CLI for the PetPal Chat Service.
- Creates DB if missing
- Runs Alembic migrations
"""

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Dict
from urllib.parse import urlparse

# --- Path Setup ---
project_root = Path(__file__).parent.parent.absolute()
sys.path.insert(0, str(project_root / "src"))

from dotenv import load_dotenv

# --- Logging and Helpers ---
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("manage_db")


def colored(text: str, color: str) -> str:
    colors = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "reset": "\033[0m",
    }
    return f"{colors.get(color, '')}{text}{colors['reset']}"


def run_command(command: str, check: bool = True) -> subprocess.CompletedProcess:
    logger.info(colored(f"$ {command}", "yellow"))
    result = subprocess.run(
        command, shell=True, text=True, capture_output=True, cwd=project_root
    )
    if result.stdout:
        print(result.stdout)
    if result.stderr:
        print(colored(result.stderr, "red" if result.returncode else "yellow"), file=sys.stderr)
    if check and result.returncode:
        raise RuntimeError(f"'{command}' exited with status {result.returncode}")
    return result


def get_db_params_from_url(db_url: str) -> Dict:
    parsed = urlparse(str(db_url))
    return {
        "user": parsed.username or "postgres",
        "password": parsed.password or "postgres",
        "host": parsed.hostname or "localhost",
        "port": parsed.port or 5432,
        "dbname": parsed.path.lstrip("/"),
    }


def admin_url(db_params: Dict) -> str:
    return (
        f"postgresql://{db_params['user']}:{db_params['password']}"
        f"@{db_params['host']}:{db_params['port']}/postgres"
    )


def create_db(db_params: Dict):
    db_name = db_params["dbname"]
    logger.info(f"Ensuring database '{db_name}' exists on host '{db_params['host']}'...")
    # check=False: CREATE DATABASE fails harmlessly when it already exists
    run_command(f'psql "{admin_url(db_params)}" -c "CREATE DATABASE {db_name}"', check=False)
    logger.info(colored(f"Database '{db_name}' created or already exists.", "green"))


def delete_db(db_params: Dict):
    db_name = db_params["dbname"]
    logger.info(f"Deleting database '{db_name}'...")
    run_command(
        f'psql "{admin_url(db_params)}" -c "SELECT pg_terminate_backend(pid) FROM pg_stat_activity WHERE datname = \'{db_name}\';"',
        check=False,
    )
    run_command(f'psql "{admin_url(db_params)}" -c "DROP DATABASE IF EXISTS {db_name}"')
    logger.info(colored(f"Database '{db_name}' deleted.", "green"))


def main():
    dotenv_path = project_root / ".env.dev"
    if dotenv_path.exists():
        logger.info(f"Loading environment variables from {dotenv_path}")
        load_dotenv(dotenv_path=dotenv_path, override=True)
    else:
        logger.warning(f"{dotenv_path} not found. Relying on shell environment variables.")

    from petpal_chat_service.config import settings

    parser = argparse.ArgumentParser(
        description=f"{settings.PROJECT_NAME} Database Management Tool"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init", help="Create the database and apply migrations.")
    subparsers.add_parser("recreate", help="Drop, create and migrate the database.")
    subparsers.add_parser("delete-db", help="Drop the database for this service.")
    create_mig_parser = subparsers.add_parser(
        "create-migration", help="Create a new Alembic migration file."
    )
    create_mig_parser.add_argument("-m", "--message", required=True, help="Migration description.")
    subparsers.add_parser("upgrade", help="Apply all pending migrations to the database.")
    downgrade_parser = subparsers.add_parser(
        "downgrade", help="Downgrade migrations by a number of steps."
    )
    downgrade_parser.add_argument(
        "-s", "--step", type=int, default=1, help="Number of steps to downgrade (default: 1)."
    )

    args = parser.parse_args()

    db_params = get_db_params_from_url(str(settings.DATABASE_URL))
    os.environ["PGPASSWORD"] = db_params["password"]

    try:
        if args.command == "init":
            create_db(db_params)
            run_command("alembic upgrade head")
        elif args.command == "recreate":
            delete_db(db_params)
            create_db(db_params)
            run_command("alembic upgrade head")
        elif args.command == "delete-db":
            delete_db(db_params)
        elif args.command == "create-migration":
            run_command(f'alembic revision --autogenerate -m "{args.message}"')
        elif args.command == "upgrade":
            run_command("alembic upgrade head")
        elif args.command == "downgrade":
            run_command(f"alembic downgrade -{args.step}")

        print(colored("\nOperation completed successfully.", "green"))

    except Exception as e:
        logger.error(colored(f"\nOperation failed: {e}", "red"), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
