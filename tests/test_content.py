import json

import pytest

from ayah_review.content import ItemContent, StaticContentProvider


def test_from_file(tmp_path):
    path = tmp_path / "content.json"
    path.write_text(json.dumps({
        "1:1": {"text": "In the name of God", "translation": "Bismillah"},
        "112:1": {"text": "Say, He is God, the One"},
    }), encoding="utf-8")
    provider = StaticContentProvider.from_file(str(path))
    assert provider.get_item("1:1") == ItemContent("1:1", "In the name of God", "Bismillah")
    assert provider.get_item("112:1").translation == ""
    assert provider.item_ids() == ["1:1", "112:1"]


def test_missing_file_gives_empty_provider(tmp_path):
    provider = StaticContentProvider.from_file(str(tmp_path / "nope.json"))
    assert provider.item_ids() == []


def test_unknown_item_raises_key_error():
    with pytest.raises(KeyError):
        StaticContentProvider().get_item("2:255")
