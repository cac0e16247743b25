import pytest

from core.types import CategoryKind
from rules.loader import Category, RuleTable, RuleTableError, load_rule_table, parse_rules


def test_default_table_order(table):
    ids = [c.id for c in table]
    assert ids == [
        "greeting",
        "wellbeing",
        "joke",
        "help",
        "thanks",
        "farewell",
        "identity",
        "time",
        "date",
        "fallback",
    ]


def test_fallback_is_last(table):
    assert table.fallback.id == "fallback"
    assert table.fallback.kind == CategoryKind.FALLBACK
    assert len(table.fallback.replies) == 6


def test_static_categories_have_replies(table):
    for category in table:
        if category.is_dynamic:
            assert category.template
            assert category.replies == ()
        else:
            assert category.replies


def test_joke_category_has_five_replies(table):
    assert len(table.get("joke").replies) == 5


def test_dynamic_kinds(table):
    assert table.get("identity").kind == CategoryKind.IDENTITY
    assert table.get("time").kind == CategoryKind.TIME
    assert table.get("date").kind == CategoryKind.DATE


def test_get_unknown_category(table):
    with pytest.raises(KeyError):
        table.get("weather")


def test_substring_matching_is_not_token_bounded():
    greeting = Category(id="greeting", kind=CategoryKind.STATIC, triggers=("hi",), replies=("Hello!",))
    assert greeting.matches("this is fine")
    assert not greeting.matches("good morning")


def test_fallback_matches_anything():
    fallback = Category(id="fallback", kind=CategoryKind.FALLBACK, replies=("Go on.",))
    assert fallback.matches("")
    assert fallback.matches("zzz")


def test_triggers_are_lowercased():
    table = parse_rules(
        {
            "categories": [
                {"id": "greeting", "triggers": ["HeLLo"], "replies": ["Hi!"]},
                {"id": "fallback", "kind": "fallback", "replies": ["Hm."]},
            ]
        }
    )
    assert table.get("greeting").triggers == ("hello",)


def test_load_custom_rules_file(tmp_path):
    rules_path = tmp_path / "rules.yaml"
    rules_path.write_text(
        """
categories:
  - id: weather
    triggers: [rain, sunny]
    replies: ["Bring an umbrella!"]
  - id: fallback
    kind: fallback
    replies: ["Tell me more."]
""",
        encoding="utf-8",
    )
    table = load_rule_table(rules_path)
    assert len(table) == 2
    assert table.get("weather").replies == ("Bring an umbrella!",)


@pytest.mark.parametrize(
    "categories, message",
    [
        ([], "no categories"),
        ([{"id": "greeting", "triggers": ["hi"], "replies": ["Hello"]}], "fallback"),
        (
            [
                {"id": "fallback", "kind": "fallback", "replies": ["a"]},
                {"id": "greeting", "triggers": ["hi"], "replies": ["Hello"]},
            ],
            "fallback",
        ),
        (
            [
                {"id": "greeting", "triggers": ["hi"], "replies": ["Hello"]},
                {"id": "greeting", "triggers": ["hey"], "replies": ["Hey"]},
                {"id": "fallback", "kind": "fallback", "replies": ["a"]},
            ],
            "duplicate",
        ),
        (
            [
                {"id": "greeting", "triggers": ["hi"], "replies": []},
                {"id": "fallback", "kind": "fallback", "replies": ["a"]},
            ],
            "reply",
        ),
        (
            [
                {"id": "identity", "kind": "identity", "triggers": ["who are you"]},
                {"id": "fallback", "kind": "fallback", "replies": ["a"]},
            ],
            "template",
        ),
        (
            [
                {"id": "greeting", "replies": ["Hello"]},
                {"id": "fallback", "kind": "fallback", "replies": ["a"]},
            ],
            "trigger",
        ),
        (
            [
                {"id": "greeting", "kind": "sarcasm", "triggers": ["hi"], "replies": ["Hello"]},
                {"id": "fallback", "kind": "fallback", "replies": ["a"]},
            ],
            "invalid category",
        ),
    ],
)
def test_invalid_tables_rejected(categories, message):
    with pytest.raises(RuleTableError, match=message):
        parse_rules({"categories": categories})


def test_document_without_categories_rejected():
    with pytest.raises(RuleTableError):
        parse_rules({"rules": []})


def test_rule_table_is_a_value_error():
    with pytest.raises(ValueError):
        RuleTable([])
