import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./data/homesphere.db"
    log_level: str = "INFO"
    log_file: str = "logs/app.log"
    scene_workers: int = 0
    seed_demo: bool = False
    host: str = "127.0.0.1"
    port: int = 8080

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            log_level=os.getenv("HOMESPHERE_LOG_LEVEL", cls.log_level).upper(),
            log_file=os.getenv("HOMESPHERE_LOG_FILE", cls.log_file),
            scene_workers=int(os.getenv("HOMESPHERE_SCENE_WORKERS", str(cls.scene_workers))),
            seed_demo=_as_bool(os.getenv("HOMESPHERE_SEED_DEMO", "false")),
            host=os.getenv("HOMESPHERE_HOST", cls.host),
            port=int(os.getenv("HOMESPHERE_PORT", str(cls.port))),
        )
