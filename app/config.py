"""PULSE — Central Configuration via Pydantic Settings."""

from typing import List

from pydantic_settings import BaseSettings

_PUBLISHED = "https://docs.google.com/spreadsheets/d/e"


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Snapshot sources (published CSV exports) ──
    management_sheet_url: str = (
        f"{_PUBLISHED}/2PACX-1vTeQRJT07I2RDj-RMPHSDkwJ_DI7B5apB4g36zBNSNQUCNO8t261H1QkSudY1IW6Tul-2gyMFZ2s7YB"
        "/pub?gid=1305977821&single=true&output=csv"
    )
    budget_sheet_url: str = (
        f"{_PUBLISHED}/2PACX-1vTeQRJT07I2RDj-RMPHSDkwJ_DI7B5apB4g36zBNSNQUCNO8t261H1QkSudY1IW6Tul-2gyMFZ2s7YB"
        "/pub?gid=1847440817&single=true&output=csv"
    )
    manager_status_sheet_url: str = (
        f"{_PUBLISHED}/2PACX-1vTeQRJT07I2RDj-RMPHSDkwJ_DI7B5apB4g36zBNSNQUCNO8t261H1QkSudY1IW6Tul-2gyMFZ2s7YB"
        "/pub?gid=1995902069&single=true&output=csv"
    )
    monthly_sheet_url: str = (
        f"{_PUBLISHED}/2PACX-1vTeQRJT07I2RDj-RMPHSDkwJ_DI7B5apB4g36zBNSNQUCNO8t261H1QkSudY1IW6Tul-2gyMFZ2s7YB"
        "/pub?gid=884280652&single=true&output=csv"
    )
    daily_sheet_url: str = (
        f"{_PUBLISHED}/2PACX-1vTeQRJT07I2RDj-RMPHSDkwJ_DI7B5apB4g36zBNSNQUCNO8t261H1QkSudY1IW6Tul-2gyMFZ2s7YB"
        "/pub?gid=477152601&single=true&output=csv"
    )
    audience_sheet_url: str = (
        f"{_PUBLISHED}/2PACX-1vRBr1Ap1kltQfvzY7CVuTORiFwXEQ5mMoWqkJVxT_btv7I-Gcc4VVZUfW54hhjmZCSe7pyb1kslu5Gz"
        "/pub?gid=768968276&single=true&output=csv"
    )
    campaign_sheet_url: str = (
        f"{_PUBLISHED}/2PACX-1vQkeYQVGzHSfg9jtUf6bglZYiUb61MZuaYEQqNdBNphnnYHr9thKBgYno5rByrUlyXQ7x-O_0D7xZ3G"
        "/pub?gid=768968276&single=true&output=csv"
    )

    # ── HTTP ──
    http_timeout_seconds: float = 30.0
    http_max_retries: int = 3

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    sync_on_startup: bool = True
    sync_interval_minutes: int = 60

    # ── Engine ──
    schema_version: str = "1.0.0"
    memo_max_entries: int = 64
    excluded_managers: List[str] = [
        "Google Ads Account in No Use",
        "Not Managed by EME",
        "Paused/Ended",
    ]
    # Placeholder rows in the manager-status sheet (team headers etc.)
    reserved_manager_substrings: List[str] = ["team", "sohan"]
    reserved_team_substrings: List[str] = ["sohan"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
