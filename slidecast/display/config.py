"""Display client configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings

from slidecast.schemas.slideshow import OrderingPolicy


class DisplaySettings(BaseSettings):
    # Server
    server_url: str = "http://localhost:3000"
    request_timeout: float = 30.0

    # Playback
    transition_seconds: float = 1.0  # crossfade length
    default_interval: float = 3.0
    default_order: OrderingPolicy = OrderingPolicy.RANDOM

    # Preferences
    preferences_path: Path = Path.home() / ".slidecast" / "display.json"
    preferences_poll_seconds: float = 2.0

    # Channel reconnect backoff
    reconnect_initial_delay: float = 5.0
    reconnect_max_delay: float = 300.0
    reconnect_multiplier: float = 2.0

    debug: bool = False

    model_config = {"env_prefix": "SLIDECAST_DISPLAY_"}

    @property
    def ws_url(self) -> str:
        base = self.server_url.rstrip("/")
        if base.startswith("https://"):
            return "wss://" + base[len("https://"):] + "/ws"
        if base.startswith("http://"):
            return "ws://" + base[len("http://"):] + "/ws"
        return base + "/ws"
