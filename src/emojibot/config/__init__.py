from emojibot.config.env import (
    EnvSnapshot,
    InvalidBoolError,
    get_bool_or_default,
    get_or_default,
    lookup_flag,
    to_bool,
)

__all__ = [
    "EnvSnapshot",
    "InvalidBoolError",
    "get_bool_or_default",
    "get_or_default",
    "lookup_flag",
    "to_bool",
]
