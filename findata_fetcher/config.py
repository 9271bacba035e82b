from __future__ import annotations

from dataclasses import dataclass
import os

from .errors import ConfigurationError


FMP_BASE_URL = "https://financialmodelingprep.com/api"
FX_BASE_URL = "https://api.exchangerate.host"
RATE_LIMIT_PER_MINUTE = 250

ENV_API_KEY = "FMP_API_KEY"
ENV_FX_ACCESS_KEY = "FX_ACCESS_KEY"
ENV_BASE_FOLDER = "FINDATA_BASE_FOLDER"


@dataclass(frozen=True)
class FetcherConfig:
    """
    Everything the fetch layer needs, passed explicitly.

    `api_key` may be empty: index builders and fully cached runs never touch the
    network. A network-bound fundamentals fetch without a key is fatal.
    """

    base_folder: str
    api_key: str = ""
    fx_access_key: str = ""
    base_url: str = FMP_BASE_URL
    fx_base_url: str = FX_BASE_URL
    rate_limit_per_minute: float = RATE_LIMIT_PER_MINUTE
    max_attempts: int = 3
    retry_delay_seconds: float = 2.0
    request_timeout_seconds: float | None = 60.0

    def __post_init__(self):
        if not self.base_folder:
            raise ConfigurationError("base_folder must not be empty")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.retry_delay_seconds < 0:
            raise ValueError("retry_delay_seconds must be >= 0")
        if self.rate_limit_per_minute < 0:
            raise ValueError("rate_limit_per_minute must be >= 0 (0 disables limiting)")

    @classmethod
    def from_env(cls, *, base_folder: str | None = None, **overrides) -> "FetcherConfig":
        folder = base_folder or os.environ.get(ENV_BASE_FOLDER, "")
        return cls(
            base_folder=folder,
            api_key=os.environ.get(ENV_API_KEY, ""),
            fx_access_key=os.environ.get(ENV_FX_ACCESS_KEY, ""),
            **overrides,
        )

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(f"API key is not configured (set {ENV_API_KEY} or pass --api-key)")
        return self.api_key
