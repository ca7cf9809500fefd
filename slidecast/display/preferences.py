"""Device-local display preferences stored as a small JSON file."""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slidecast.schemas.slideshow import OrderingPolicy

logger = logging.getLogger(__name__)

DEFAULT_ORDER = OrderingPolicy.RANDOM
DEFAULT_TRANSITION_TIME = 3.0


class StoredPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order: OrderingPolicy = Field(default=DEFAULT_ORDER, alias="slideshowOrder")
    transition_time: float = Field(default=DEFAULT_TRANSITION_TIME, gt=0, alias="transitionTime")
    tag_color_index: int = Field(default=0, ge=0, alias="tagColorIndex")
    playlist_color_index: int = Field(default=0, ge=0, alias="playlistColorIndex")


class Preferences:
    """Reads, writes and watches the preferences file."""

    def __init__(self, path: Path, defaults: StoredPreferences | None = None):
        self.path = Path(path)
        self.values = defaults or StoredPreferences()
        self._mtime: float | None = None

    @classmethod
    def load(cls, path: Path, defaults: StoredPreferences | None = None) -> "Preferences":
        prefs = cls(path, defaults)
        prefs.reload()
        return prefs

    @property
    def order(self) -> OrderingPolicy:
        return self.values.order

    @property
    def transition_time(self) -> float:
        return self.values.transition_time

    def _stat_mtime(self) -> float | None:
        try:
            return self.path.stat().st_mtime
        except FileNotFoundError:
            return None

    def reload(self) -> bool:
        """Re-read the file. Returns True when the stored values changed.

        A missing or invalid file leaves defaults in place.
        """
        self._mtime = self._stat_mtime()
        if self._mtime is None:
            return False
        try:
            loaded = StoredPreferences.model_validate_json(self.path.read_text())
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable preferences %s: %s", self.path, e)
            return False
        changed = loaded != self.values
        self.values = loaded
        return changed

    def reload_if_changed(self) -> bool:
        """Reload only when the file's mtime moved since the last read or write."""
        if self._stat_mtime() == self._mtime:
            return False
        return self.reload()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.values.model_dump_json(by_alias=True, indent=2))
        self._mtime = self._stat_mtime()

    def update(self, order: OrderingPolicy | None = None, transition_time: float | None = None) -> None:
        changes = {}
        if order is not None:
            changes["order"] = OrderingPolicy(order)
        if transition_time is not None:
            changes["transition_time"] = transition_time
        if not changes:
            return
        self.values = self.values.model_copy(update=changes)
        self.save()

    def next_color_index(self, kind: str, palette_size: int) -> int:
        """Return the color slot for a new tag or playlist and advance the counter."""
        field_name = f"{kind}_color_index"
        if field_name not in ("tag_color_index", "playlist_color_index"):
            raise ValueError(f"Unknown color counter: {kind}")
        current = getattr(self.values, field_name) % palette_size
        self.values = self.values.model_copy(update={field_name: (current + 1) % palette_size})
        self.save()
        return current
