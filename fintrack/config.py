import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LedgerSettings(BaseModel):
    """Runtime configuration for the ledger service and its collaborators."""
    database_url: str = Field(default="sqlite:///fintrack.db")
    sql_echo: bool = False

    # Aggregate expected balances / PnL / debt totals through database views
    use_views: bool = False

    # Spreadsheet mirror; disabled when spreadsheet_id is unset
    spreadsheet_id: Optional[str] = None
    google_credentials_file: str = "credentials.json"
    mirror_queue_size: int = Field(default=1000, ge=1)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def load_settings(env_file: Optional[str] = None) -> LedgerSettings:
    """Build settings from the process environment, after loading a .env file if present."""
    load_dotenv(env_file)

    return LedgerSettings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///fintrack.db"),
        sql_echo=_env_flag("SQL_ECHO"),
        use_views=_env_flag("LEDGER_USE_VIEWS"),
        spreadsheet_id=os.getenv("SPREADSHEET_ID") or None,
        google_credentials_file=os.getenv("GOOGLE_CREDENTIALS_FILE", "credentials.json"),
        mirror_queue_size=int(os.getenv("MIRROR_QUEUE_SIZE", "1000")),
    )
