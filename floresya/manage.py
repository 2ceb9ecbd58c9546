#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""
import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def _ensure_env_file():
    """
    Set DJANGO_ENV_FILE from the first .env file found so management
    commands on the server work without a manual `export`.
    """
    if os.environ.get("DJANGO_ENV_FILE"):
        env_candidate = Path(os.environ["DJANGO_ENV_FILE"])
        if env_candidate.exists():
            load_dotenv(env_candidate)
        return

    base_dir = Path(__file__).resolve().parent
    candidates = [
        base_dir / ".env.production",
        base_dir.parent / ".env.production",
        base_dir / ".env",
        base_dir.parent / ".env",
    ]
    for candidate in candidates:
        if candidate.exists():
            os.environ["DJANGO_ENV_FILE"] = str(candidate)
            load_dotenv(candidate)
            break


def main():
    """Run administrative tasks."""
    _ensure_env_file()
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'floresya.settings')
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
