# -*- coding: utf-8 -*-
"""Root conftest.py for pytest configuration.

Forces hermetic settings before any ``teamhub`` module (including those
collected for doctests) reads its configuration.
"""

# Standard
import os

TEST_SQLITE_MEMORY_URL = "sqlite:///:memory:"

os.environ["DATABASE_URL"] = TEST_SQLITE_MEMORY_URL
os.environ["CACHE_TYPE"] = "memory"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["JWT_SECRET_KEY"] = "unit-test-secret"
os.environ["LOG_FORMAT"] = "text"
