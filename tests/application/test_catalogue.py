import pytest
import yaml

from lingosrs.application.catalogue import (
    CatalogueError,
    CatalogueItem,
    load_catalogue,
    parse_catalogue,
)
from lingosrs.domain.errors import LingoSrsError
from lingosrs.domain.review.models import ItemKind


def test_parse_yaml_cards_mapping():
    text = """
cards:
  - id: bonjour
  - id: passe-compose
    kind: grammar
  - id: hello
    language: EN
"""
    items = parse_catalogue(text)

    assert items == [
        CatalogueItem("bonjour", ItemKind.VOCABULARY, "fr"),
        CatalogueItem("passe-compose", ItemKind.GRAMMAR, "fr"),
        CatalogueItem("hello", ItemKind.VOCABULARY, "en"),
    ]


def test_parse_json_vocabulary_export():
    text = '{"cards": [{"id": "v1", "french": "chat"}, {"id": "v2", "french": "chien"}]}'

    items = parse_catalogue(text, default_language="fr")

    assert [i.item_id for i in items] == ["v1", "v2"]


def test_parse_bare_list_with_defaults():
    items = parse_catalogue(
        "- subjonctif\n- conditionnel\n",
        default_kind=ItemKind.GRAMMAR,
        default_language="es",
    )

    assert all(i.kind == ItemKind.GRAMMAR for i in items)
    assert all(i.language == "es" for i in items)


def test_duplicate_ids_keep_first():
    items = parse_catalogue("items:\n  - a\n  - id: a\n    kind: grammar\n  - b\n")

    assert [(i.item_id, i.kind) for i in items] == [
        ("a", ItemKind.VOCABULARY),
        ("b", ItemKind.VOCABULARY),
    ]


def test_empty_document():
    assert parse_catalogue("") == []


def test_duplicate_keys_rejected():
    with pytest.raises(yaml.YAMLError, match="duplicate key"):
        parse_catalogue("cards:\n  - id: a\n    id: b\n")


@pytest.mark.parametrize(
    "text",
    [
        "title: no list here\n",
        "cards: 3\n",
        "cards:\n  - {kind: grammar}\n",
        "cards:\n  - id: a\n    kind: phrasebook\n",
        "- chat\n- yes\n",
    ],
)
def test_bad_shapes(text):
    with pytest.raises(CatalogueError):
        parse_catalogue(text)


def test_catalogue_error_is_domain_error():
    assert issubclass(CatalogueError, LingoSrsError)


def test_load_catalogue_from_file(tmp_path):
    path = tmp_path / "deck.yaml"
    path.write_text("cards:\n  - id: merci\n", encoding="utf-8")

    assert load_catalogue(path) == [CatalogueItem("merci", ItemKind.VOCABULARY, "fr")]
