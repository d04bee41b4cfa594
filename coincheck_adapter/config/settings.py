"""
Configuration settings for the broker adapters.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
at startup, so a missing API secret or a typo in the trading mode fails
immediately rather than on the first signed request.

**Why centralized config?**
  - Single source of truth for credentials, endpoints and trading mode.
  - Easy to test (construct CoincheckSettings directly, no environment needed).
  - Secrets stay out of source code (.env is never committed).

Settings are keyed by broker identity: Settings.for_broker(Broker.COINCHECK)
returns the Coincheck block, and an adapter refuses to start without it.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from coincheck_adapter.execution.models import Broker, CashMarginType

# Load .env from project root (no-op when the file doesn't exist)
load_dotenv(dotenv_path=Path(__file__).parent.parent.parent / ".env")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")


@dataclass(frozen=True)
class CoincheckSettings:
    """
    Configuration for the Coincheck exchange.

    **Security note**: api_key and api_secret sign every private request.
    Load them from COINCHECK_API_KEY / COINCHECK_API_SECRET, never hardcode.

    Attributes:
        api_key: Coincheck access key. REQUIRED.
        api_secret: Coincheck secret key used for HMAC signing. REQUIRED.
        base_url: API root (default "https://coincheck.com").
        timeout_seconds: HTTP request timeout in seconds (default 30).
        cash_margin_type: Trading mode used for position queries
                         (default CASH).
        pair: Currency pair traded (default "btc_jpy").
        quote_depth: Max price levels per side kept by fetch_quotes (default 100).
    """
    api_key: str
    api_secret: str
    base_url: str = "https://coincheck.com"
    timeout_seconds: int = 30
    cash_margin_type: CashMarginType = CashMarginType.CASH
    pair: str = "btc_jpy"
    quote_depth: int = 100

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.api_key:
            raise ValueError(
                "COINCHECK_API_KEY is required but not set. "
                "Please set it in your .env file or environment variables."
            )
        if not self.api_secret:
            raise ValueError(
                "COINCHECK_API_SECRET is required but not set. "
                "Please set it in your .env file or environment variables."
            )
        if not self.base_url:
            raise ValueError("COINCHECK_BASE_URL must not be empty.")
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got: {self.timeout_seconds}"
            )
        if "_" not in self.pair:
            raise ValueError(
                f"pair must look like '<base>_<quote>' (e.g. btc_jpy), got: {self.pair}"
            )
        if self.quote_depth < 0:
            raise ValueError(
                f"quote_depth must be non-negative, got: {self.quote_depth}"
            )

    @property
    def base_currency(self) -> str:
        """Base currency of the pair ("btc" for "btc_jpy")."""
        return self.pair.split("_", 1)[0]

    @classmethod
    def from_env(cls) -> "CoincheckSettings":
        """
        Load Coincheck settings from environment variables.

        **Environment variables**:
          - COINCHECK_API_KEY (required)
          - COINCHECK_API_SECRET (required)
          - COINCHECK_BASE_URL (optional, default "https://coincheck.com")
          - COINCHECK_TIMEOUT_SECONDS (optional, default 30)
          - COINCHECK_CASH_MARGIN_TYPE (optional, one of Cash, MarginOpen,
            MarginClose, NetOut; default Cash)
          - COINCHECK_PAIR (optional, default "btc_jpy")
          - COINCHECK_QUOTE_DEPTH (optional, default 100)

        Returns:
            CoincheckSettings loaded from the environment.

        Raises:
            ValueError: If a required variable is missing or a value is invalid.

        Usage example:
            >>> # In .env file:
            >>> # COINCHECK_API_KEY=your_key
            >>> # COINCHECK_API_SECRET=your_secret
            >>> # COINCHECK_CASH_MARGIN_TYPE=NetOut
            >>> settings = CoincheckSettings.from_env()
            >>> settings.cash_margin_type
            <CashMarginType.NET_OUT: 'NetOut'>
        """
        mode_str = os.getenv("COINCHECK_CASH_MARGIN_TYPE", CashMarginType.CASH.value)
        try:
            cash_margin_type = CashMarginType(mode_str)
        except ValueError:
            valid = ", ".join(m.value for m in CashMarginType)
            raise ValueError(
                f"COINCHECK_CASH_MARGIN_TYPE must be one of {valid}, got: {mode_str}"
            )

        return cls(
            api_key=os.getenv("COINCHECK_API_KEY", ""),
            api_secret=os.getenv("COINCHECK_API_SECRET", ""),
            base_url=os.getenv("COINCHECK_BASE_URL", "https://coincheck.com"),
            timeout_seconds=_parse_int(
                "COINCHECK_TIMEOUT_SECONDS", os.getenv("COINCHECK_TIMEOUT_SECONDS", "30")
            ),
            cash_margin_type=cash_margin_type,
            pair=os.getenv("COINCHECK_PAIR", "btc_jpy"),
            quote_depth=_parse_int(
                "COINCHECK_QUOTE_DEPTH", os.getenv("COINCHECK_QUOTE_DEPTH", "100")
            ),
        )


@dataclass(frozen=True)
class Settings:
    """
    Global settings for the adapter process.

    Attributes:
        coincheck: Coincheck settings. None if Coincheck is not configured.
        log_level: Root log level for entry points (default "INFO").
    """
    coincheck: Optional[CoincheckSettings] = None
    log_level: str = "INFO"

    def for_broker(self, broker: Broker) -> CoincheckSettings:
        """
        Return the configuration block for a broker.

        Raises:
            ValueError: If the broker is not configured.
        """
        if broker == Broker.COINCHECK and self.coincheck is not None:
            return self.coincheck
        raise ValueError(f"No configuration found for broker {broker.value}.")

    @classmethod
    def from_env(cls, require_coincheck: bool = False) -> "Settings":
        """
        Load global settings from environment variables.

        Broker settings are optional by default so tools that don't trade can
        still load config. Pass require_coincheck=True in trading entry points.

        Raises:
            ValueError: If require_coincheck=True and Coincheck settings are
                       missing or invalid.
        """
        coincheck_settings = None
        try:
            coincheck_settings = CoincheckSettings.from_env()
        except ValueError as e:
            if require_coincheck:
                raise ValueError(
                    f"Coincheck settings are required but could not be loaded: {e}"
                )
            # Otherwise, Coincheck is optional - continue without it

        return cls(
            coincheck=coincheck_settings,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


# Lazily loaded singleton. Tests construct Settings directly or call reset_settings().
_default_settings: Optional[Settings] = None


def get_settings(require_coincheck: bool = False) -> Settings:
    """
    Get the global settings singleton, loading it from the environment on first use.

    Raises:
        ValueError: If require_coincheck=True and Coincheck is not configured.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env(require_coincheck=require_coincheck)

    if require_coincheck and _default_settings.coincheck is None:
        raise ValueError(
            "Coincheck settings are required but not configured. "
            "Please set COINCHECK_API_KEY and COINCHECK_API_SECRET in your .env file."
        )

    return _default_settings


def reset_settings():
    """Clear the cached settings singleton (for tests)."""
    global _default_settings
    _default_settings = None
