import os
import tempfile

# Point persistence at a throwaway SQLite file before the app is imported
_DB_DIR = tempfile.mkdtemp(prefix="circuitflow-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
