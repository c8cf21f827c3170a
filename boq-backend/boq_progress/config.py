from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "postgresql://localhost:5432/boq"
    database_schema: str = "boq"
    store_page_size: int = 1000
    analytics_chunk_size: int = 50
    cache_core_ttl_seconds: float = 30 * 60
    cache_extended_ttl_seconds: float = 30 * 60
    cache_max_bytes: int = 5 * 1024 * 1024
    # Python weekday numbers, Monday=0 .. Sunday=6
    calendar_weekend_days: List[int] = [6]
    calendar_include_weekends: bool = False
    feature_analytics_api: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def model_post_init(self, __context):
        # Out-of-range weekday numbers would silently never match
        self.calendar_weekend_days = sorted({day for day in self.calendar_weekend_days if 0 <= day <= 6})


settings = Settings()
