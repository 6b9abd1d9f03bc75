import sqlite3
from typing import List, Optional

from xmusic.db.models import Config

CURRENT_DB_VERSION = 2

# -------------------------------
# DIRECTORIES
# -------------------------------
def get_directories(db: sqlite3.Connection) -> List[str]:
    cursor = db.execute("SELECT path FROM directories ORDER BY id ASC")
    return [row["path"] for row in cursor.fetchall()]


def set_directories(db: sqlite3.Connection, directories: List[str]):
    db.execute("DELETE FROM directories")
    for path in dict.fromkeys(directories):
        db.execute("INSERT INTO directories (path) VALUES (?)", (path,))
    db.commit()


def add_directory(db: sqlite3.Connection, path: str):
    db.execute("INSERT OR IGNORE INTO directories (path) VALUES (?)", (path,))
    db.commit()

# -------------------------------
# CONFIG
# -------------------------------
def get_config(db: sqlite3.Connection) -> Config:
    row = db.execute("""
        SELECT volume, auto_advance, skip_hidden_files
        FROM config_data
        LIMIT 1
    """).fetchone()
    return Config(
        volume=float(row["volume"]),
        auto_advance=bool(row["auto_advance"]),
        skip_hidden_files=bool(row["skip_hidden_files"]),
    )


def set_config(db: sqlite3.Connection, config: Config):
    volume = min(1.0, max(0.0, float(config.volume)))
    db.execute("""
        UPDATE config_data
        SET volume = ?,
            auto_advance = ?,
            skip_hidden_files = ?
        WHERE 1
    """, (
        volume,
        config.auto_advance,
        config.skip_hidden_files,
    ))
    db.commit()

# -------------------------------
# SETTINGS (key-value)
# -------------------------------
def get_setting(db: sqlite3.Connection, key: str) -> Optional[str]:
    row = db.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def set_setting(db: sqlite3.Connection, key: str, value: str):
    db.execute(
        "INSERT INTO settings (key, value) VALUES (?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
        (key, value),
    )
    db.commit()
