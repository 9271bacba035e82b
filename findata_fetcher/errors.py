from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when the process is misconfigured (e.g. no API key for a network fetch)."""


class CacheMissError(KeyError):
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"not cached: {self.key}"


class FetchError(RuntimeError):
    def __init__(self, *, key: str, path: str, attempts: int, last_error: str | None):
        super().__init__(f"Couldn't download {path} (key={key}) after {attempts} attempts: {last_error}")
        self.key = key
        self.path = path
        self.attempts = attempts
        self.last_error = last_error
