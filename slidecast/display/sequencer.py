"""Navigation sequencer: owns the working list and the current index.

The sequencer is the only writer of the (working list, current index, used
set) triple. Every public operation leaves the index valid for the list it
returns. It performs no I/O; broadcasting and rendering are the session's job.
"""

import locale
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Sequence

from slidecast.display.catalog import SlideImage
from slidecast.schemas.slideshow import OrderingPolicy

logger = logging.getLogger(__name__)

ALL_TAG_NAME = "all"
NO_GROUPS_MESSAGE = "No group tags available. Please assign tags and try again."


class Direction(str, Enum):
    NEXT = "next"
    PREV = "prev"


@dataclass(frozen=True)
class NavigationResult:
    index: int
    images: tuple[SlideImage, ...]

    @property
    def image(self) -> SlideImage:
        return self.images[self.index]


def collation_key(text: str) -> tuple[str, str]:
    """Locale collation that ignores case first and breaks ties on case."""
    return locale.strxfrm(text.casefold()), locale.strxfrm(text)


def sort_by_title(images: Iterable[SlideImage]) -> list[SlideImage]:
    """Sort by title using the current locale's collation."""
    return sorted(images, key=lambda img: collation_key(img.title))


def group_order_images(images: Sequence[SlideImage]) -> list[SlideImage]:
    """Concatenate per-tag groups: groups by tag name, images by title.

    Tag names compare case-insensitively and the synthetic "all" tag is
    ignored. An image with k tags appears k times. Returns an empty list when
    no image carries a tag.
    """
    groups: dict[str, list[SlideImage]] = {}
    display_names: dict[str, str] = {}
    for image in images:
        seen = set()
        for tag in image.tags:
            name = tag.name.strip()
            key = name.lower()
            if not name or key == ALL_TAG_NAME or key in seen:
                continue
            seen.add(key)
            display_names.setdefault(key, name)
            groups.setdefault(key, []).append(image)

    ordered: list[SlideImage] = []
    for key in sorted(groups, key=lambda k: collation_key(display_names[k])):
        ordered.extend(sort_by_title(groups[key]))
    return ordered


def _log_alert(message: str) -> None:
    logger.warning("ALERT: %s", message)


class Sequencer:
    """Computes next/previous images under the active ordering policy."""

    def __init__(
        self,
        policy: OrderingPolicy = OrderingPolicy.RANDOM,
        rng: random.Random | None = None,
        alert: Callable[[str], None] | None = None,
    ):
        self._policy = OrderingPolicy(policy)
        self._rng = rng or random.Random()
        self._alert = alert or _log_alert
        self._catalog: tuple[SlideImage, ...] = ()
        self._subset: tuple[SlideImage, ...] = ()
        self._images: list[SlideImage] = []
        self._index = 0
        self._used: set[int | str] = set()
        self._groups_missing = False
        self._alerted = False

    # --- Read-only views ---

    @property
    def policy(self) -> OrderingPolicy:
        return self._policy

    @property
    def images(self) -> tuple[SlideImage, ...]:
        return tuple(self._images)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> SlideImage | None:
        return self._images[self._index] if self._images else None

    @property
    def used_keys(self) -> frozenset:
        return frozenset(self._used)

    @property
    def using_subset(self) -> bool:
        return bool(self._subset)

    def __len__(self) -> int:
        return len(self._images)

    # --- List management ---

    def load(self, catalog: Iterable[SlideImage], subset: Iterable[SlideImage] | None = None) -> None:
        """Replace the catalog and the selected subset.

        An empty subset means "play the full catalog".
        """
        self._catalog = tuple(catalog)
        self._subset = tuple(subset or ())
        self._used.clear()
        self._index = 0
        self._rebuild()

    def set_policy(self, policy: OrderingPolicy) -> None:
        """Switch ordering policy, keeping the current image when it survives."""
        policy = OrderingPolicy(policy)
        if policy == self._policy:
            return
        current = self.current
        self._policy = policy
        self._used.clear()
        self._rebuild()
        self._index = self._find(current.key) if current else 0
        logger.info("Ordering policy set to %s (%d images)", policy.value, len(self._images))

    def reset(self) -> None:
        """Start over: fresh derivation, empty used set, index 0."""
        self._used.clear()
        self._index = 0
        self._rebuild()

    def _rebuild(self) -> None:
        base = list(self._subset or self._catalog)
        self._groups_missing = False
        self._alerted = False

        if self._policy == OrderingPolicy.ALPHABETICAL:
            images = sort_by_title(base)
        elif self._policy == OrderingPolicy.RANDOM:
            images = base
            self._rng.shuffle(images)
        else:
            images = group_order_images(base)
            if not images:
                images = sort_by_title(base)
                self._groups_missing = bool(base)

        self._images = images
        if not self._images:
            self._index = 0
        elif self._index >= len(self._images):
            self._index = len(self._images) - 1

    def _find(self, key: int | str) -> int:
        for i, image in enumerate(self._images):
            if image.key == key:
                return i
        return 0

    def locate(self, url: str) -> int | None:
        """Index of the first image with this url, if it is in the list."""
        for i, image in enumerate(self._images):
            if image.url == url:
                return i
        return None

    # --- Navigation ---

    def _result(self) -> NavigationResult:
        return NavigationResult(index=self._index, images=tuple(self._images))

    def _raise_groups_alert(self) -> None:
        if not self._alerted:
            self._alerted = True
            self._alert(NO_GROUPS_MESSAGE)
        logger.warning("Groups order requested but no image has a tag")

    def prime(self) -> NavigationResult | None:
        """Position on the first image of a fresh list.

        In random order this is a draw, so the first image counts toward the cycle.
        """
        if not self._images:
            logger.warning("No images available to display")
            return None
        if self._groups_missing:
            self._raise_groups_alert()
        if self._policy == OrderingPolicy.RANDOM:
            self._draw_random()
        else:
            self._index = 0
        return self._result()

    def advance(self, direction: Direction) -> NavigationResult | None:
        """Move one step. Returns None, without raising, when nothing can be shown."""
        if not self._images:
            logger.warning("No images available for navigation")
            return None
        if self._groups_missing:
            self._raise_groups_alert()
            return None

        count = len(self._images)
        if Direction(direction) == Direction.NEXT:
            if self._policy == OrderingPolicy.RANDOM:
                self._draw_random()
            else:
                self._index = (self._index + 1) % count
        else:
            # Prev only steps back; in random order it cannot undo the cycle
            self._index = (self._index - 1) % count
            if self._policy == OrderingPolicy.RANDOM:
                self._used.add(self._images[self._index].key)
        return self._result()

    def jump_to(self, index: int) -> NavigationResult | None:
        """Make `index` (wrapped to the list length) current."""
        if not self._images:
            logger.warning("Ignoring jump to %d: no images loaded", index)
            return None
        self._index = index % len(self._images)
        if self._policy == OrderingPolicy.RANDOM:
            self._used.add(self._images[self._index].key)
        return self._result()

    def _draw_random(self) -> None:
        keys = {image.key for image in self._images}
        if keys <= self._used:
            self._used.clear()
            self._rng.shuffle(self._images)

        while True:
            candidate = self._rng.randrange(len(self._images))
            if self._images[candidate].key not in self._used:
                break

        self._index = candidate
        self._used.add(self._images[candidate].key)
