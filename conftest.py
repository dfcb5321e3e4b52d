"""
Shared pytest setup.

Boots Django once so the spaces and core modules can import their
models and settings. Engine tests never touch the database.

Usage:
    python -m pytest
    python -m pytest spaces/tests/test_query_parser.py -v
"""

import os

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "spacefinder.settings")
os.environ.setdefault("LLM_INTENT_ENABLED", "false")
django.setup()
