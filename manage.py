#!/usr/bin/env python
"""
Command-line entry point for the Cancer Companion backend.

Sets ``DJANGO_SETTINGS_MODULE`` to ``companion.settings`` and hands the
arguments to Django, e.g. ``python manage.py migrate`` or
``python manage.py seed_reference_data``.
"""
import os
import sys


def main() -> None:
    """Run administrative tasks."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'companion.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Install the project with `pip install -e .` "
            "inside an activated virtual environment."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
