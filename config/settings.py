"""
config/settings.py
Central configuration — reads from environment variables and .env file.
"""
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings:

    def __init__(self):
        self._load()

    def _load(self):
        import os
        env_file = BASE_DIR / ".env"
        if env_file.exists():
            for line in env_file.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, val = line.partition("=")
                    os.environ.setdefault(key.strip(), val.strip())

        # Charter party defaults: 3 days allowed, $20,000/day demurrage
        self.laytime_allowed_minutes = int(os.environ.get("LAYTIME_ALLOWED_MINUTES", "4320"))
        self.demurrage_daily_rate    = float(os.environ.get("DEMURRAGE_DAILY_RATE", "20000"))
        self.currency_symbol         = os.environ.get("CURRENCY_SYMBOL", "$")

        self.log_level = os.environ.get("LOG_LEVEL", "INFO")

        # Placeholders the extractor emits for timestamps it could not read
        self.missing_time_markers = ("", "n/a", "na", "none", "null", "not mentioned", "-")


settings = Settings()
