"""Print each table of the local SQLite database with its columns and row count."""

import sqlite3

from kairopay.db.session import DATABASE_URL

if not DATABASE_URL.startswith("sqlite"):
    raise SystemExit(f"inspect_db.py only reads SQLite databases, got {DATABASE_URL}")

db_path = DATABASE_URL.replace("sqlite+aiosqlite:///", "", 1)

conn = sqlite3.connect(db_path)
cursor = conn.cursor()

cursor.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;")
tables = [row[0] for row in cursor.fetchall()]

for table in tables:
    cursor.execute(f"SELECT COUNT(*) FROM {table};")
    print(f"\n=== {table} ({cursor.fetchone()[0]} rows) ===")
    cursor.execute(f"PRAGMA table_info({table});")
    for col in cursor.fetchall():
        print(f"{col[1]} ({col[2]})")

if "alembic_version" in tables:
    cursor.execute("SELECT version_num FROM alembic_version;")
    print(f"\nAlembic revision: {cursor.fetchone()[0]}")

conn.close()
