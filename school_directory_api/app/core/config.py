"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts without any configuration; in a production deployment
you should at least override ``SECRET_KEY``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "School Directory API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Path to the SQLite database.  Relative paths are resolved against
    # the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "school_directory.db")

    # Page size used by list endpoints when the request carries no
    # ``limit`` parameter.
    default_page_limit: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "25"))

    # Photo uploads: maximum size in bytes and target directory.
    max_file_upload: int = int(os.getenv("MAX_FILE_UPLOAD", "1000000"))
    file_upload_path: str = os.getenv("FILE_UPLOAD_PATH", "public/uploads")

    # Geocoding of school addresses.  Set GEOCODER_PROVIDER=none to
    # store schools without coordinates.
    geocoder_provider: str = os.getenv("GEOCODER_PROVIDER", "nominatim")
    geocoder_url: str = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org")
    geocoder_api_key: str = os.getenv("GEOCODER_API_KEY", "")
    geocoder_timeout: float = float(os.getenv("GEOCODER_TIMEOUT", "10"))
    geocoder_user_agent: str = os.getenv("GEOCODER_USER_AGENT", "school-directory-api")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
