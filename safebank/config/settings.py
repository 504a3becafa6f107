"""
Configuration Management for SafeBank

Uses pydantic-settings for type-safe configuration from environment
variables (prefix SAFEBANK_) and an optional .env file.

All thresholds and limits the scoring engine and the ledger read live
here, and their cross-field rules are checked when settings load:
- fraud thresholds must satisfy low < medium < high
- the daily limit must be at least the single-transaction limit
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SafeBankSettings(BaseSettings):
    """
    Fraud thresholds, transaction limits and offline-mode settings.

    Loads from environment variables and .env file. Defaults match a
    standard deployment; see minimal() for low-resource devices.
    """

    model_config = SettingsConfigDict(
        env_prefix="SAFEBANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Authentication (read by the auth layer)
    max_failed_attempts: int = Field(
        default=3,
        ge=1,
        description="Failed authentication attempts before lockout"
    )
    lockout_duration_minutes: int = Field(
        default=15,
        ge=1,
        description="Account lockout duration"
    )
    require_device_verification: bool = Field(
        default=True,
        description="Require a registered device for transactions"
    )

    # Fraud detection thresholds
    fraud_threshold_low: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Scores above this are worth a second look"
    )
    fraud_threshold_medium: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Scores above this are flagged and need approval"
    )
    fraud_threshold_high: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Scores above this are blocked"
    )
    enable_behavioral_analysis: bool = Field(
        default=True,
        description="Full behavioral scoring (False = lightweight rules only)"
    )

    # Transaction limits
    daily_transaction_limit: float = Field(
        default=10000.0,
        gt=0,
        description="Maximum total amount per user per calendar day"
    )
    single_transaction_limit: float = Field(
        default=5000.0,
        gt=0,
        description="Maximum amount of a single transaction"
    )

    # Offline mode
    offline_transaction_limit: float = Field(
        default=1000.0,
        gt=0,
        description="Maximum amount of a transaction sealed offline"
    )
    offline_cache_duration_hours: int = Field(
        default=24,
        ge=1,
        description="How long an offline envelope stays valid"
    )

    local_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO currency code amounts are expressed in"
    )

    @model_validator(mode='after')
    def validate_relationships(self) -> 'SafeBankSettings':
        """Validate threshold ordering and limit relationships."""
        if self.fraud_threshold_low >= self.fraud_threshold_medium:
            raise ValueError("Low fraud threshold must be less than medium threshold")

        if self.fraud_threshold_medium >= self.fraud_threshold_high:
            raise ValueError("Medium fraud threshold must be less than high threshold")

        if self.daily_transaction_limit < self.single_transaction_limit:
            raise ValueError(
                "Daily limit must be greater than or equal to single transaction limit"
            )

        return self

    @classmethod
    def minimal(cls, **overrides) -> 'SafeBankSettings':
        """
        Preset for very low-resource environments.

        Behavioral analysis is disabled, so scoring falls back to the
        lightweight rule set.
        """
        values = dict(
            max_failed_attempts=3,
            lockout_duration_minutes=10,
            fraud_threshold_low=0.4,
            fraud_threshold_medium=0.7,
            fraud_threshold_high=0.9,
            daily_transaction_limit=5000.0,
            single_transaction_limit=2000.0,
            require_device_verification=True,
            enable_behavioral_analysis=False,
            offline_transaction_limit=500.0,
            offline_cache_duration_hours=12,
        )
        values.update(overrides)
        return cls(**values)


@lru_cache()
def get_settings() -> SafeBankSettings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return SafeBankSettings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate settings are properly configured.

    Returns {"safebank": bool} plus "safebank_error" on failure.
    Useful for startup checks.
    """
    results: dict[str, object] = {}

    try:
        get_settings()
        results["safebank"] = True
    except ValueError as e:
        results["safebank"] = False
        results["safebank_error"] = str(e)

    return results
