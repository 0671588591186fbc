# config.py
import os
from dataclasses import dataclass

from dotenv import load_dotenv

@dataclass
class Config:
    """Holds all application configuration."""
    OMDB_API_KEY: str = ""
    OMDB_API_URL: str = "https://www.omdbapi.com/"
    DATABASE_FILENAME: str = "favorites.db"
    REQUEST_TIMEOUT: float = 10.0
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Builds a Config from the environment, reading a local .env first."""
        load_dotenv()
        defaults = cls()
        return cls(
            OMDB_API_KEY=os.getenv("OMDB_API_KEY", defaults.OMDB_API_KEY),
            OMDB_API_URL=os.getenv("OMDB_API_URL", defaults.OMDB_API_URL),
            DATABASE_FILENAME=os.getenv("MOVIE_FINDER_DB", defaults.DATABASE_FILENAME),
            REQUEST_TIMEOUT=float(os.getenv("MOVIE_FINDER_TIMEOUT", defaults.REQUEST_TIMEOUT)),
            LOG_LEVEL=os.getenv("MOVIE_FINDER_LOG_LEVEL", defaults.LOG_LEVEL).upper(),
        )
