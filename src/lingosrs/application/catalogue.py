"""
Item catalogue loading.

A catalogue lists the learning items a learner can enroll, e.g. a vocabulary
deck exported as JSON or a grammar topic list written in YAML. Accepted shapes:

    cards:                      # or "items", or a bare top-level list
      - id: bonjour
        kind: vocabulary
        language: fr
      - merci                   # bare id, kind/language from defaults
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
import yaml.constructor

from lingosrs.domain.errors import LingoSrsError
from lingosrs.domain.review.models import ItemKind

logger = logging.getLogger(__name__)


class CatalogueError(LingoSrsError, ValueError):
    """Raised when a catalogue file has an unexpected shape."""


@dataclass(frozen=True)
class CatalogueItem:
    item_id: str
    kind: ItemKind
    language: str


class UniqueKeyLoader(yaml.SafeLoader):
    """
    Custom YAML loader that forbids duplicate keys.
    """

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep)


def parse_catalogue(
    text: str,
    default_kind: ItemKind = ItemKind.VOCABULARY,
    default_language: str = "fr",
) -> list[CatalogueItem]:
    """
    Parse catalogue text (YAML, or JSON as its subset) into items.

    Duplicate ids keep their first occurrence.
    """
    data: Any = yaml.load(text, Loader=UniqueKeyLoader)
    if data is None:
        return []

    if isinstance(data, dict):
        entries = data.get("cards", data.get("items"))
        if entries is None:
            raise CatalogueError("Expected a 'cards' or 'items' list at the top level")
    else:
        entries = data

    if not isinstance(entries, list):
        raise CatalogueError(f"Expected a list of items, got {type(entries).__name__}")

    items: list[CatalogueItem] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        if isinstance(entry, bool):
            raise CatalogueError(f"Entry {index}: {entry!r} is not an item id")
        if isinstance(entry, (str, int)):
            item_id, kind, language = str(entry), default_kind, default_language.lower()
        elif isinstance(entry, dict) and "id" in entry:
            item_id = str(entry["id"])
            try:
                kind = ItemKind(entry.get("kind", default_kind.value))
            except ValueError as e:
                raise CatalogueError(f"Entry {index}: unknown kind {entry.get('kind')!r}") from e
            language = str(entry.get("language", default_language)).lower()
        else:
            raise CatalogueError(f"Entry {index}: expected an id or a mapping with 'id'")

        if item_id in seen:
            logger.debug(f"Skipping duplicate catalogue id '{item_id}'")
            continue
        seen.add(item_id)
        items.append(CatalogueItem(item_id=item_id, kind=kind, language=language))

    return items


def load_catalogue(
    path: Path,
    default_kind: ItemKind = ItemKind.VOCABULARY,
    default_language: str = "fr",
) -> list[CatalogueItem]:
    return parse_catalogue(
        path.read_text(encoding="utf-8"),
        default_kind=default_kind,
        default_language=default_language,
    )
