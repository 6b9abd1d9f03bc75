from __future__ import annotations

SCHEMA_V1_SQL = """
CREATE TABLE directories (
    id INTEGER PRIMARY KEY,
    path TEXT UNIQUE
);

CREATE TABLE settings (
    key TEXT PRIMARY KEY,
    value TEXT
);

CREATE TABLE config_data (
    id INTEGER PRIMARY KEY,
    volume FLOAT,
    auto_advance BOOLEAN
);

INSERT INTO config_data (volume, auto_advance) VALUES (0.8, 1);
"""

SCHEMA_V2_SQL = """
ALTER TABLE config_data ADD COLUMN skip_hidden_files BOOLEAN DEFAULT 1;
"""
