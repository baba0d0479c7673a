from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "moneycycle"
    ENV: str = "dev"

    # 기본 SQLite 파일 DB (개인 가계부 용도)
    # apps/backend/moneycycle.sqlite3를 절대경로로 지정하여 CWD에 따른 경로 문제 방지
    _default_db_path = Path(__file__).resolve().parents[2] / "moneycycle.sqlite3"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    CORS_ORIGINS: list[str] = ["*"]
    TIMEZONE: str = "Asia/Seoul"

    # 스케줄러(cron) 호출 시 Authorization: Bearer <CRON_SECRET>
    CRON_SECRET: str = "change-me"

    # 사용자 설정이 없을 때 사용할 급여 사이클 시작일
    DEFAULT_CYCLE_START_DAY: int = 1

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="MC_", case_sensitive=False)


settings = Settings()
