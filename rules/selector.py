import logging
import random
from collections.abc import Callable
from datetime import datetime

from core.config import SessionConfig
from core.types import CategoryKind
from rules.loader import Category, RuleTable

logger = logging.getLogger(__name__)


def format_clock_time(now: datetime) -> str:
    """12-hour clock without a leading zero, e.g. "3:07 PM"."""
    return now.strftime("%I:%M %p").lstrip("0")


def format_calendar_date(now: datetime) -> str:
    """Full weekday, month name and day number, e.g. "Sunday, October 18"."""
    return f"{now:%A}, {now:%B} {now.day}"


class ReplyEngine:
    """Keyword reply selection over a RuleTable.

    Matching is a plain substring scan of the lowercased input, in table
    order, so "hi" matches inside "this" and an earlier category always
    beats a later, more specific one. Randomness and the clock are injected
    so tests can pin both.
    """

    def __init__(
        self,
        table: RuleTable,
        config: SessionConfig,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.table = table
        self.config = config
        self.rng = rng or random.Random()
        self.clock = clock

    def select_category(self, text: str) -> Category:
        normalized = text.lower()
        for category in self.table:
            if category.matches(normalized):
                logger.debug("Matched category %s", category.id)
                return category
        return self.table.fallback

    def reply(self, text: str) -> str:
        category = self.select_category(text)
        if category.is_dynamic:
            return self._synthesize(category)
        return self.rng.choice(category.replies)

    def _synthesize(self, category: Category) -> str:
        if category.kind == CategoryKind.IDENTITY:
            return category.template.format(bot_name=self.config.bot_name)

        now = self.clock()
        if category.kind == CategoryKind.TIME:
            return category.template.format(time=format_clock_time(now))
        return category.template.format(date=format_calendar_date(now))
