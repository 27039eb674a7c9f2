from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./jamroom.db"
    sql_echo: bool = False

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    cors_origins: str = "*"
    log_level: str = "INFO"

    # Клиентская синхронизация
    poll_interval_seconds: float = 5.0
    heartbeat_interval_seconds: float = 30.0

    # Пороги присутствия участника
    recording_window_seconds: int = 120
    listening_window_seconds: int = 300

    min_bpm: int = 60
    max_bpm: int = 200

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
