import random
from datetime import datetime

import pytest

from core.config import Config, SessionConfig, load_config
from core.session import Session
from memory.conversation import ConversationStore
from memory.storage import InMemoryStore
from rules.loader import RuleTable, load_rule_table
from rules.selector import ReplyEngine

# Mid-hour, so new turns are labelled "just now"
FIXED_NOW = datetime(2024, 3, 15, 14, 30, 0)


@pytest.fixture
def config() -> Config:
    """Load default config for tests."""
    return load_config()


@pytest.fixture
def temp_config(tmp_path):
    """Create a temp config TOML for isolated tests."""
    toml_content = """
[server]
host = "127.0.0.1"
port = 9000
[session]
bot_name = "Pip"
reply_delay_ms = 0
[storage]
backend = "memory"
history_key = "testHistory"
[logging]
level = "DEBUG"
"""
    config_path = tmp_path / "test.toml"
    config_path.write_text(toml_content)
    return load_config(str(config_path))


@pytest.fixture
def table() -> RuleTable:
    return load_rule_table()


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(bot_name="Pip", reply_delay_ms=0)


@pytest.fixture
def engine(table, session_config) -> ReplyEngine:
    return ReplyEngine(table, session_config, rng=random.Random(42), clock=lambda: FIXED_NOW)


@pytest.fixture
def kv() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def store(kv) -> ConversationStore:
    return ConversationStore(kv, clock=lambda: FIXED_NOW)


@pytest.fixture
def session(session_config, store, engine) -> Session:
    return Session(session_config, store, engine)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
