from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Engine configuration loaded from environment variables."""

    database_url: str
    dataset_id: str = "songcamp"  # Remote dataset holding comments, notifications and members
    debug: bool = False
    poll_interval_seconds: float = 10.0  # Live refresh interval while the view is visible
    mention_suggestion_limit: int = 8
    inbox_limit: int = 50  # Notifications shown in the inbox panel

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SONGCAMP_",
        "extra": "ignore",
    }
