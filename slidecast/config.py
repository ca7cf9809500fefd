"""Slidecast Server Configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    server_name: str = "Slidecast Server"
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Paths
    data_dir: Path = Path.home() / "slidecast" / "data"
    image_dir: Path = Path.home() / "slidecast" / "images"
    thumbnail_dir: Path = Path.home() / "slidecast" / "thumbnails"

    # Database
    db_path: Path = Path.home() / "slidecast" / "data" / "images.db"

    # Uploads
    max_upload_bytes: int = 50 * 1024 * 1024  # 50MB
    thumbnail_size: int = 200

    # Tags and playlists
    default_color: str = "#cccccc"
    color_palette: list[str] = [
        "#e0e0e0", "#dde1e6", "#e5e0df", "#ffd7d9", "#ffd6e8", "#e8daff", "#d0e2ff",
        "#bae6ff", "#9ef0f0", "#a7f0ba", "#FFD8BD", "#ffeeb1", "#D5FFBD",
    ]
    hidden_tag_name: str = "Hidden"
    hidden_tag_color: str = "#666666"

    # Slideshow broadcasts
    max_play_select_images: int = 1000

    model_config = {"env_prefix": "SLIDECAST_"}

    @property
    def preferences_path(self) -> Path:
        """Server-side preferences file holding the color counters."""
        return self.data_dir / "preferences.json"

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.image_dir, self.thumbnail_dir, self.db_path.parent]:
            d.mkdir(parents=True, exist_ok=True)


settings = Settings()
settings.ensure_dirs()
