import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import yaml

from core.types import CategoryKind

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "default.yaml"

DYNAMIC_KINDS = frozenset({CategoryKind.IDENTITY, CategoryKind.TIME, CategoryKind.DATE})


class RuleTableError(ValueError):
    """Raised when a rule document cannot form a valid table."""


@dataclass(frozen=True)
class Category:
    id: str
    kind: CategoryKind
    triggers: tuple[str, ...] = ()
    replies: tuple[str, ...] = ()
    template: str = ""

    @property
    def is_dynamic(self) -> bool:
        return self.kind in DYNAMIC_KINDS

    def matches(self, normalized: str) -> bool:
        """True if any trigger is a substring of already-lowercased text."""
        if self.kind == CategoryKind.FALLBACK:
            return True
        return any(trigger in normalized for trigger in self.triggers)


class RuleTable:
    """Ordered, read-only category list. The first matching category wins."""

    def __init__(self, categories: list[Category]):
        _validate(categories)
        self._categories = tuple(categories)

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def fallback(self) -> Category:
        return self._categories[-1]

    def get(self, category_id: str) -> Category:
        for category in self._categories:
            if category.id == category_id:
                return category
        raise KeyError(category_id)

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)


def _validate(categories: list[Category]) -> None:
    if not categories:
        raise RuleTableError("rule table has no categories")

    ids = [c.id for c in categories]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise RuleTableError(f"duplicate category ids: {', '.join(duplicates)}")

    fallbacks = [c for c in categories if c.kind == CategoryKind.FALLBACK]
    if len(fallbacks) != 1 or categories[-1].kind != CategoryKind.FALLBACK:
        raise RuleTableError("exactly one fallback category is required and it must be last")

    for category in categories:
        if category.is_dynamic:
            if not category.template:
                raise RuleTableError(f"{category.id}: dynamic category needs a template")
        elif not category.replies:
            raise RuleTableError(f"{category.id}: at least one reply is required")
        if category.kind != CategoryKind.FALLBACK and not category.triggers:
            raise RuleTableError(f"{category.id}: at least one trigger is required")


def parse_rules(data: dict) -> RuleTable:
    """Build a RuleTable from an already-parsed rule document."""
    if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
        raise RuleTableError("rule document must have a 'categories' list")

    categories = []
    for entry in data["categories"]:
        try:
            kind = CategoryKind(entry.get("kind", CategoryKind.STATIC))
            categories.append(
                Category(
                    id=str(entry["id"]),
                    kind=kind,
                    triggers=tuple(str(t).lower() for t in entry.get("triggers") or []),
                    replies=tuple(str(r) for r in entry.get("replies") or []),
                    template=str(entry.get("template") or ""),
                )
            )
        except (KeyError, ValueError, AttributeError) as e:
            raise RuleTableError(f"invalid category entry {entry!r}: {e}") from e
    return RuleTable(categories)


def load_rule_table(path: str | Path = DEFAULT_RULES_PATH) -> RuleTable:
    """Read a YAML rule document and return the validated table."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    table = parse_rules(data)
    logger.info("Loaded %d reply categories from %s", len(table), path)
    return table
