"""
Configuration for ViralBites.

Settings are read from the environment (or a .env file) once at startup and
passed explicitly to the agents, the OAuth client and the API layer.

Environment variables required:
- GEMINI_API_KEY: Google AI Studio key for the Gemini API
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    port: int = 8000
    debug: bool = False

    # Google Gemini
    gemini_api_key: str
    api_version: str = "v1beta"
    discovery_model: str = "gemini-3-flash-preview"
    verification_model: str = "gemini-2.5-flash"
    language_code: str = "en_US"

    # Search behaviour
    max_radius_km: float = 20.0
    min_places: int = 5
    max_places: int = 7
    image_size_suffix: str = "=w400-h300-k-no"

    # Frontend / OAuth
    frontend_origin: str = "http://localhost:5173"
    public_base_url: str = "http://localhost:8000"
    instagram_client_id: str = ""
    instagram_client_secret: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""
    oauth_timeout_seconds: float = 120.0
    oauth_poll_interval_seconds: float = 0.5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, with optional explicit overrides."""
    return Settings(**overrides)
