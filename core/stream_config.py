"""
Per-session stream configuration.

Seven built-in settings with fixed types plus an open set of custom keys.
``is_reconnect`` is derived from the request and can't be written by
callers; none of the built-ins can be removed.
"""

from typing import Any, Dict, Optional

from error_handling import ConfigurationError, ReadOnlySettingError, ProtectedSettingError
from utils.constants import (
    BUILTIN_SETTINGS,
    READ_ONLY_SETTINGS,
    DEFAULT_SLEEP_TIME,
    DEFAULT_EXEC_LIMIT,
    DEFAULT_CLIENT_RECONNECT,
    DEFAULT_KEEP_ALIVE_TIME,
)

_MISSING = object()


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _to_int(value) -> int:
    if isinstance(value, bool):
        raise TypeError(f"expected a whole number, got {value!r}")
    number = float(value) if isinstance(value, str) else value
    if number != int(number):
        # 0.5 would truncate to 0, which means unlimited or disabled
        raise ValueError(f"{value!r} is not a whole number")
    return int(number)


_COERCE = {
    'sleep_time': float,
    'exec_limit': _to_int,
    'client_reconnect': _to_int,
    'allow_cors': _to_bool,
    'keep_alive_time': _to_int,
    'use_chunked_encoding': _to_bool,
}


class StreamConfig:
    """Typed settings for one StreamSession."""

    def __init__(self, is_reconnect: bool = False, **settings):
        self.sleep_time: float = DEFAULT_SLEEP_TIME
        self.exec_limit: int = DEFAULT_EXEC_LIMIT
        self.client_reconnect: int = DEFAULT_CLIENT_RECONNECT
        self.allow_cors: bool = False
        self.keep_alive_time: int = DEFAULT_KEEP_ALIVE_TIME
        self.use_chunked_encoding: bool = False
        self._is_reconnect = bool(is_reconnect)
        self.extras: Dict[str, Any] = {}

        for key, value in settings.items():
            self.set(key, value)

    @classmethod
    def from_settings(cls, settings: Optional[Dict[str, Any]], is_reconnect: bool = False) -> "StreamConfig":
        """Build from a ConfigManager settings dict, ignoring non-stream keys."""
        config = cls(is_reconnect=is_reconnect)
        for key, value in (settings or {}).items():
            if key in _COERCE:
                config.set(key, value)
        return config

    @property
    def is_reconnect(self) -> bool:
        return self._is_reconnect

    def get(self, key: str, default: Any = _MISSING) -> Any:
        if key == 'is_reconnect':
            return self._is_reconnect
        if key in _COERCE:
            return getattr(self, key)
        if key in self.extras:
            return self.extras[key]
        if default is _MISSING:
            raise KeyError(key)
        return default

    def set(self, key: str, value: Any) -> None:
        if key in READ_ONLY_SETTINGS:
            raise ReadOnlySettingError(key)
        if key in _COERCE:
            try:
                value = _COERCE[key](value)
            except (TypeError, ValueError, OverflowError) as e:
                raise ConfigurationError(
                    f"Invalid value for {key}: {value!r}",
                    "sleep_time takes seconds; exec_limit, client_reconnect and "
                    "keep_alive_time take whole seconds.",
                    e
                )
            setattr(self, key, value)
        else:
            self.extras[key] = value

    def remove(self, key: str) -> None:
        if key in BUILTIN_SETTINGS:
            raise ProtectedSettingError(key)
        self.extras.pop(key, None)

    def as_dict(self) -> Dict[str, Any]:
        settings = {key: self.get(key) for key in BUILTIN_SETTINGS}
        settings.update(self.extras)
        return settings

    def __getitem__(self, key):
        return self.get(key)

    def __setitem__(self, key, value):
        self.set(key, value)

    def __delitem__(self, key):
        self.remove(key)

    def __contains__(self, key):
        return key in BUILTIN_SETTINGS or key in self.extras

    def __repr__(self):
        return f"StreamConfig({self.as_dict()!r})"
