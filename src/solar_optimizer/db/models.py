"""SQL table definitions."""

SCHEMA_VERSION = 1

TABLES = [
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        id      INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL
    )
    """,

    # ── Readings ────────────────────────────────────────────
    """
    CREATE TABLE IF NOT EXISTS readings (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp   INTEGER NOT NULL,
        voltage     REAL NOT NULL,
        current     REAL NOT NULL,
        power       REAL NOT NULL,
        angle_h     INTEGER NOT NULL,
        angle_v     INTEGER NOT NULL,
        light       INTEGER NOT NULL,
        dust_alert  INTEGER NOT NULL,
        dust_raw    INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_readings_timestamp ON readings(timestamp)",
]
