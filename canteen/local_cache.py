"""Client-side cart snapshot.

The cache stores the whole cart as a JSON array under one fixed key in
whatever string mapping it is given (a dict in tests, the decoded cart
cookie in the web app). Last write wins; nothing is versioned.
"""
import json
import logging
from typing import Dict, List, MutableMapping

from pydantic import TypeAdapter, ValidationError

from .schemas import CartLine

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "canteen_cart"

_lines_adapter = TypeAdapter(List[CartLine])


def merge_lines(lines: List[CartLine]) -> List[CartLine]:
    """Fold repeated food ids into one line with the summed quantity, first position kept."""
    merged: Dict[int, CartLine] = {}
    for line in lines:
        seen = merged.get(line.food_item.id)
        if seen is None:
            merged[line.food_item.id] = line
        else:
            merged[line.food_item.id] = seen.model_copy(update={"quantity": seen.quantity + line.quantity})
    if len(merged) != len(lines):
        logger.warning("Merged %d duplicate cart line(s)", len(lines) - len(merged))
    return list(merged.values())


class LocalCache:
    def __init__(self, storage: MutableMapping[str, str], key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def save(self, lines: List[CartLine]) -> None:
        self.storage[self.key] = json.dumps(
            [line.model_dump(mode="json") for line in lines], separators=(",", ":")
        )

    def load(self) -> List[CartLine]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            lines = _lines_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable cart snapshot under %s: %s", self.key, exc.error_count())
            return []
        return merge_lines(lines)

    def clear(self) -> None:
        self.storage.pop(self.key, None)
