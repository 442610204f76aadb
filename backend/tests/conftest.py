"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach real infrastructure
os.environ.setdefault("STORAGE_SERVICE_KEY", "service-role-test-key")
os.environ.setdefault("STORAGE_URL", "http://storage.test")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
