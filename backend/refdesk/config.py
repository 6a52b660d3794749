"""Runtime configuration read from the environment (and an optional .env file)."""

import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./refdesk.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "sequential": guards then commit, best-effort (see crew_commit)
# "recheck": schedule check repeated inside the write transaction
CREW_COMMIT_MODE = os.getenv("CREW_COMMIT_MODE", "sequential").lower()

DEFAULT_CENTRAL_TOLERANCE = float(os.getenv("DEFAULT_CENTRAL_TOLERANCE", "1"))


def cors_origins() -> list:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    extra = os.getenv("CORS_ORIGINS", "")
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())
    return origins
