import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BASE_DIR = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.SITE_NAME: str = os.getenv("SITE_NAME", "TravelFlow")
        self.SHARE_CARD_BUILD_ORIGIN: str = os.getenv(
            "SHARE_CARD_BUILD_ORIGIN", "https://travelflowapp.netlify.app"
        )
        # Bump when the card layout changes so every cached asset is re-rendered.
        self.SHARE_CARD_TEMPLATE_REVISION: str = os.getenv(
            "SHARE_CARD_TEMPLATE_REVISION", "2026-02-25-site-og-single-renderer-v5"
        )
        self.SHARE_CARD_TARGET_SCOPE: str = os.getenv("SHARE_CARD_TARGET_SCOPE", "")
        self.SHARE_CARD_PUBLIC_ROOT: Path = Path(
            os.getenv("SHARE_CARD_PUBLIC_ROOT", str(BASE_DIR / "public"))
        )
        self.SHARE_CARD_CONCURRENCY: int = _as_int(os.getenv("SHARE_CARD_CONCURRENCY"), 6)
        self.SHARE_CARD_LOG_EVERY: int = _as_int(os.getenv("SHARE_CARD_LOG_EVERY"), 100)
        self.SHARE_CARD_RENDERER: str = os.getenv("SHARE_CARD_RENDERER", "ondemand")
        self.SHARE_CARD_FONT_PATH: str = os.getenv(
            "SHARE_CARD_FONT_PATH", "/fonts/share-card-heading.ttf"
        )
        self.SHARE_CARD_FONT_URL: str = os.getenv("SHARE_CARD_FONT_URL", "")
        self.ASSET_FETCH_TIMEOUT: float = float(os.getenv("ASSET_FETCH_TIMEOUT", "4"))
        self.SHARE_CARD_CONTENT_ROOT: Path = Path(
            os.getenv("SHARE_CARD_CONTENT_ROOT", str(BASE_DIR / "content"))
        )

        self.GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
        self.MAP_LANGUAGE: str = os.getenv("MAP_LANGUAGE", "en")
        self.DIRECTIONS_TIMEOUT: float = float(os.getenv("DIRECTIONS_TIMEOUT", "4"))
        self.MAP_IMAGE_TIMEOUT: float = float(os.getenv("MAP_IMAGE_TIMEOUT", "6"))
        self.MAP_IMAGES_ENABLED: bool = _as_bool(os.getenv("MAP_IMAGES_ENABLED"), True)

        self.SHARED_TRIP_STORE: str = os.getenv("SHARED_TRIP_STORE", "sql")
        self.SHARED_TRIP_RPC_URL: str = os.getenv("SHARED_TRIP_RPC_URL", "")
        self.SHARED_TRIP_RPC_KEY: str = os.getenv("SHARED_TRIP_RPC_KEY", "")
        self.SHARED_TRIP_RPC_TIMEOUT: float = float(os.getenv("SHARED_TRIP_RPC_TIMEOUT", "4"))
        self.SHARED_TRIP_DB_URL: str = os.getenv(
            "SHARED_TRIP_DB_URL", f"sqlite:///{BASE_DIR / 'app.db'}"
        )


settings = Settings()
