"""Item text and translation lookup for the study screen."""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass
class ItemContent:
    item_id: str
    text: str
    translation: str = ""


class ContentProvider(Protocol):
    def get_item(self, item_id: str) -> ItemContent: ...


class StaticContentProvider:
    """Serves item content from a JSON file.

    The file maps item ids to objects with ``text`` and ``translation``::

        {"2:255": {"text": "...", "translation": "..."}}
    """

    def __init__(self, items: dict[str, ItemContent] | None = None):
        self._items = items or {}

    @classmethod
    def from_file(cls, file_path: str) -> "StaticContentProvider":
        path = Path(file_path)
        if not path.exists():
            return cls()
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls({
            item_id: ItemContent(
                item_id=item_id,
                text=entry.get("text", ""),
                translation=entry.get("translation", ""),
            )
            for item_id, entry in data.items()
        })

    def get_item(self, item_id: str) -> ItemContent:
        return self._items[item_id]

    def item_ids(self) -> list[str]:
        return list(self._items)
