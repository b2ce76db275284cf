"""
Aspect ratios offered by the image cropper.

Each ratio has a UI-facing name ("square") and a storage-facing directory
("1-1"). Either form resolves to the same descriptor, so the storage layout
can change without touching the names editors see.
"""
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .exceptions import UnknownRatio


@dataclass(frozen=True)
class AspectRatio:
    """A named aspect ratio and its storage directory."""

    name: str
    value: Optional[float]
    label: str
    directory: str

    @property
    def is_free(self) -> bool:
        """True for the unconstrained ratio."""
        return self.value is None


ASPECT_RATIOS = (
    AspectRatio("square", 1.0, "Square (1:1)", "1-1"),
    AspectRatio("landscape", 16 / 9, "Landscape (16:9)", "16-9"),
    AspectRatio("portrait", 9 / 16, "Portrait (9:16)", "9-16"),
    AspectRatio("wide", 21 / 9, "Wide (21:9)", "21-9"),
    AspectRatio("standard", 4 / 3, "Standard (4:3)", "4-3"),
    AspectRatio("free", None, "Free", "free"),
)


class AspectRatioCatalog:
    """Lookup table over a fixed set of aspect ratios."""

    def __init__(self, ratios=ASPECT_RATIOS):
        self._by_name = {}
        self._by_directory = {}
        for ratio in ratios:
            if ratio.name in self._by_name:
                raise ValueError(f"Duplicate ratio name: {ratio.name}")
            if ratio.directory in self._by_directory:
                raise ValueError(f"Duplicate ratio directory: {ratio.directory}")
            self._by_name[ratio.name] = ratio
            self._by_directory[ratio.directory] = ratio

    def __iter__(self) -> Iterator[AspectRatio]:
        return iter(self._by_name.values())

    def __len__(self):
        return len(self._by_name)

    def __contains__(self, key):
        return key in self._by_name or key in self._by_directory

    def resolve(self, key: str) -> AspectRatio:
        """
        Return the ratio whose name or directory equals ``key``.

        Raises:
            UnknownRatio: if neither field matches.
        """
        ratio = self._by_name.get(key) or self._by_directory.get(key)
        if ratio is None:
            raise UnknownRatio(key)
        return ratio

    def names(self) -> List[str]:
        return list(self._by_name)

    def choices(self) -> List[Tuple[str, str]]:
        """Return (name, label) pairs for Django choice fields."""
        return [(ratio.name, ratio.label) for ratio in self]

    def label_for(self, key: str) -> str:
        """Return the display label, or the key itself if unknown."""
        try:
            return self.resolve(key).label
        except UnknownRatio:
            return key


catalog = AspectRatioCatalog()


def resolve(key: str) -> AspectRatio:
    """Resolve ``key`` against the default catalog."""
    return catalog.resolve(key)
