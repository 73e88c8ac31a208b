"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field

from table.rules import TableRules


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _parse_natural_payout() -> float | None:
    """Parse NATURAL_PAYOUT; unset or empty means a natural is an ordinary 21."""
    value = os.getenv("NATURAL_PAYOUT", "").strip()
    return float(value) if value else None


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "120"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class AdvisoryConfig:
    """External advisory service used by computer seats."""

    api_key: str | None = field(default_factory=lambda: os.getenv("ADVISORY_API_KEY"))
    url: str = field(
        default_factory=lambda: os.getenv(
            "ADVISORY_URL",
            "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        )
    )
    model: str = field(default_factory=lambda: os.getenv("ADVISORY_MODEL", "gemini-2.0-flash"))
    timeout: float = field(
        default_factory=lambda: float(os.getenv("ADVISORY_TIMEOUT", "8"))
    )
    switched_on: bool = field(
        default_factory=lambda: os.getenv("ADVISORY_ENABLED", "true").lower() == "true"
    )

    @property
    def enabled(self) -> bool:
        """Advice is requested only with a key and when not switched off."""
        return bool(self.api_key) and self.switched_on


@dataclass(frozen=True)
class TableConfig:
    """Default table configuration."""

    num_decks: int = field(default_factory=lambda: int(os.getenv("NUM_DECKS", "6")))
    reshuffle_threshold: int = 15
    max_seats: int = 3
    starting_chips: int = field(
        default_factory=lambda: int(os.getenv("STARTING_CHIPS", "10000"))
    )
    aggressive_bet: int = 100
    conservative_bet: int = 50
    dealer_stands_on: int = 17
    natural_payout: float | None = field(default_factory=_parse_natural_payout)

    def to_rules(self) -> TableRules:
        """Build the engine's rule set from this configuration."""
        return TableRules(
            num_decks=self.num_decks,
            reshuffle_threshold=self.reshuffle_threshold,
            max_seats=self.max_seats,
            starting_chips=self.starting_chips,
            aggressive_bet=self.aggressive_bet,
            conservative_bet=self.conservative_bet,
            dealer_stands_on=self.dealer_stands_on,
            natural_payout=self.natural_payout,
        )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds

    table: TableConfig = field(default_factory=TableConfig)
    advisory: AdvisoryConfig = field(default_factory=AdvisoryConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


# Global configuration instance
config = AppConfig()
