from __future__ import annotations

import json
import random
from pathlib import Path


DEFAULT_WORD_POOLS: dict[str, list[str]] = {
    "easy": [
        "CAT", "DOG", "HOUSE", "TREE", "CAR", "PIZZA", "SUN", "MOON",
        "FLOWER", "FISH", "BIRD", "AIRPLANE", "GUITAR", "BOOK", "COMPUTER",
        "PHONE", "APPLE", "BANANA", "BEACH", "MOUNTAIN", "ROCKET", "STAR",
    ],
    "medium": [
        "LIGHTHOUSE", "VOLCANO", "SNOWMAN", "CASTLE", "BICYCLE", "PENGUIN",
        "RAINBOW", "UMBRELLA", "DRAGON", "CACTUS", "TELESCOPE", "SUBMARINE",
        "SCARECROW", "HAMMOCK", "WATERFALL", "KANGAROO",
    ],
    "hard": [
        "ECLIPSE", "AVALANCHE", "ORCHESTRA", "LABYRINTH", "CONSTELLATION",
        "MICROSCOPE", "CAROUSEL", "PARACHUTE", "HIBERNATION", "ARCHAEOLOGIST",
        "SKYSCRAPER", "TREASURE",
    ],
}


def normalize_word(word: str) -> str:
    return (word or "").strip().upper()


def load_pools(path: str) -> dict[str, list[str]]:
    """Read a ``{"pool": ["word", ...]}`` JSON file."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"word pools file must hold an object: {path}")

    pools: dict[str, list[str]] = {}
    for name, words in raw.items():
        if not isinstance(words, list):
            raise ValueError(f"word pool {name!r} must be a list")
        cleaned = [normalize_word(w) for w in words if isinstance(w, str) and w.strip()]
        if cleaned:
            pools[str(name)] = cleaned
    if not pools:
        raise ValueError(f"word pools file has no words: {path}")
    return pools


class WordSource:
    def __init__(
        self,
        pools: dict[str, list[str]] | None = None,
        default_pool: str = "easy",
        rng: random.Random | None = None,
    ) -> None:
        source = pools if pools is not None else DEFAULT_WORD_POOLS
        self._pools = {
            name: [normalize_word(w) for w in words if normalize_word(w)]
            for name, words in source.items()
        }
        self._pools = {name: words for name, words in self._pools.items() if words}
        if not self._pools:
            raise ValueError("WordSource needs at least one non-empty pool")
        self.default_pool = default_pool if default_pool in self._pools else next(iter(self._pools))
        self._rng = rng or random.Random()

    def pool_names(self) -> list[str]:
        return list(self._pools.keys())

    def has_pool(self, name: str) -> bool:
        return name in self._pools

    def pick(self, pool: str | None = None, exclude: set[str] | None = None) -> str:
        """Pick a word from ``pool``, avoiding ``exclude`` until the pool runs dry."""
        words = self._pools.get(pool or self.default_pool) or self._pools[self.default_pool]
        fresh = [w for w in words if w not in (exclude or set())]
        return self._rng.choice(fresh or words)
