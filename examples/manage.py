#!/usr/bin/env python
"""Management entrypoint for the example checkout server.

Typical first run::

    python manage.py migrate
    python manage.py bootstrap_events --config ../events.example.toml
    python manage.py createsuperuser
    python manage.py runserver
"""

import os
import sys


def main() -> None:
    """Run administrative tasks."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "settings")
    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
