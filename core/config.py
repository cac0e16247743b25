import tomli
from pydantic import BaseModel, ConfigDict


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 7860


class SessionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bot_name: str = "ChatBot"
    user_name: str = "You"
    reply_delay_ms: int = 800
    greeting: str = "Hi there! 👋 I'm your chat companion. How can I help you today?"
    cleared_message: str = "Chat cleared! 🧹 Let's start fresh. How can I help you?"


class StorageConfig(BaseModel):
    backend: str = "sqlite"
    db_path: str = "~/.chatbuddy/storage.db"
    history_key: str = "chatHistory"


class RulesConfig(BaseModel):
    path: str = ""  # empty means the bundled rules/default.yaml


class LoggingConfig(BaseModel):
    level: str = "INFO"


class Config(BaseModel):
    server: ServerConfig = ServerConfig()
    session: SessionConfig = SessionConfig()
    storage: StorageConfig = StorageConfig()
    rules: RulesConfig = RulesConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: str = "config/default.toml") -> Config:
    """Load config from TOML file, validate with Pydantic."""
    with open(path, "rb") as f:
        data = tomli.load(f)
    return Config(**data)
