# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Keep machine-specific values in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "DAYLIST_APP_NAME": "App display name (default: daylist).",
    "DAYLIST_LOG_LEVEL": "Console logging level (default: INFO).",
    # Identity / dates
    "DAYLIST_OWNER_ID": "Owner id used by the console connector (default: local).",
    "DAYLIST_TIMEZONE": "IANA timezone that defines 'today' for every date comparison (default: UTC).",
    # Connectors
    "DAYLIST_CONSOLE_ENABLED": "Enable console connector (true/false).",
    # Sweeper
    "DAYLIST_SWEEPER_ENABLED": "Run the auto-closure sweeper in the background (true/false).",
    "DAYLIST_SWEEP_INTERVAL_SECONDS": "Seconds between sweeps (default: 3600).",
    "DAYLIST_SWEEP_LOOKBACK_DAYS": "Past days covered by one sweep (default: 1 = yesterday only).",
    # Paths (gitignored)
    "DAYLIST_DATA_DIR": "Local data directory for the database and logs (default: .local/daylist).",
    "DAYLIST_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
}
