import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    database_url: str
    redis_url: str = "redis://redis:6379/0"
    redis_password: Optional[str] = None
    hostname: str = "localhost"
    port: str = "8000"
    server_software: str = "Uvicorn"
    container_name: str = "FastAPI App"
    log_level: str = "INFO"
    seed_demo_users: bool = True


def load_settings() -> Settings:
    database_url = os.getenv('DATABASE_URL')
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")

    return Settings(
        database_url=database_url,
        redis_url=os.getenv("REDIS_URL", "redis://redis:6379/0"),
        redis_password=os.getenv("REDIS_PASSWORD") or None,
        hostname=os.getenv("HOSTNAME", "localhost"),
        port=os.getenv("PORT", "8000"),
        server_software=os.getenv("SERVER_SOFTWARE", "Uvicorn"),
        container_name=os.getenv("CONTAINER_NAME", "FastAPI App"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        seed_demo_users=os.getenv("SEED_DEMO_USERS", "1").lower() not in ("0", "false", "no"),
    )
