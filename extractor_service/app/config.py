import os
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
DATABASE_PATH = BASE_DIR / "data" / "extractor.db"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Runtime settings, read from the environment (and .env) once at import."""

    def __init__(self):
        self.REDDIT_AUTH_URL = os.getenv("REDDIT_AUTH_URL", "https://www.reddit.com/api/v1/access_token")
        self.REDDIT_API_BASE = os.getenv("REDDIT_API_BASE", "https://oauth.reddit.com").rstrip("/")
        # {username} is filled with the Reddit account name sent by the wizard
        self.REDDIT_USER_AGENT = os.getenv("REDDIT_USER_AGENT", "CommentExtraction/1.0 (by u/{username})")
        self.REDDIT_TIMEOUT_SECONDS = float(os.getenv("REDDIT_TIMEOUT_SECONDS", "30"))

        self.JOB_STORE = os.getenv("JOB_STORE", "memory").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{DATABASE_PATH}")

        self.MAX_COMMENT_DEPTH = int(os.getenv("MAX_COMMENT_DEPTH", "200"))
        self.FILENAME_MAX_LENGTH = int(os.getenv("FILENAME_MAX_LENGTH", "80"))

        self.CORS_ORIGINS = _split_csv(os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173",
        ))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
