"""
Core Data Models for SafeBank

These models define the schemas for everything the ledger and the
scoring engine exchange:
1. Users and their behavioral baselines (supplied by the auth layer)
2. Transactions and their lifecycle status
3. Per-user daily limit bookkeeping
4. Receipts and offline envelopes handed back to callers

Identity fields (transaction_id, user_id) are frozen. Everything else
on a Transaction is allowed to evolve through its lifecycle.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Kinds of money movement the ledger accepts."""
    TRANSFER = "transfer"
    PAYMENT = "payment"
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"


class TransactionStatus(str, Enum):
    """
    Transaction lifecycle status.

    Every transaction starts as PENDING. APPROVED and REJECTED are
    terminal: once reached, the status never changes again.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"
    REQUIRES_APPROVAL = "requires_approval"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.APPROVED, TransactionStatus.REJECTED)


# =============================================================================
# USER MODELS (input from the authentication layer)
# =============================================================================

HourOfDay = Annotated[int, Field(ge=0, le=23)]


class BehavioralProfile(BaseModel):
    """
    Statistical summary of a user's historical transactions.

    Used by the scoring engine as the baseline for anomaly detection.
    Rebuilt from a transaction sample by
    safebank.scoring.profile.build_behavioral_profile.
    """
    typical_transaction_amount: float = Field(
        default=0.0,
        ge=0.0,
        description="Mean amount of historical transactions"
    )
    typical_transaction_times: list[HourOfDay] = Field(
        default_factory=list,
        max_length=3,
        description="Most frequent hours of day, most frequent first"
    )
    common_recipients: list[str] = Field(
        default_factory=list,
        max_length=5,
        description="Most frequent recipients, most frequent first"
    )
    geographic_patterns: list[str] = Field(
        default_factory=list,
        description="Known locations (not used for scoring)"
    )
    usage_frequency: float = Field(
        default=0.0,
        ge=0.0,
        description="Transactions per day over the sample span"
    )


class DeviceInfo(BaseModel):
    """Device the user registered with."""
    model_config = ConfigDict(str_strip_whitespace=True)

    device_id: str = Field(..., min_length=1, max_length=128)
    device_type: str = Field(default="smartphone", max_length=50)
    os_version: Optional[str] = None
    app_version: str = Field(default="1.0.0", max_length=20)
    is_trusted: bool = False
    registered_at: datetime = Field(default_factory=utc_now)


class UserProfile(BaseModel):
    """
    A verified user, as handed over by the authentication layer.

    SafeBank core never verifies credentials itself; it only reads the
    device id and the behavioral profile from here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UUID = Field(default_factory=uuid4)
    phone_number: str = Field(..., min_length=7, max_length=20)
    device_info: DeviceInfo
    behavioral_profile: BehavioralProfile = Field(default_factory=BehavioralProfile)
    created_at: datetime = Field(default_factory=utc_now)
    last_login: Optional[datetime] = None
    failed_attempts: int = Field(default=0, ge=0)
    is_locked: bool = False


# =============================================================================
# TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A single money movement.

    CRITICAL: fraud_score is written once, by the scoring engine, through
    assign_fraud_score(). The ledger never recomputes it.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    # Identity (immutable)
    transaction_id: UUID = Field(
        default_factory=uuid4,
        frozen=True,
        description="Unique transaction identifier"
    )
    user_id: UUID = Field(
        ...,
        frozen=True,
        description="Owner of the transaction"
    )

    amount: float = Field(
        ...,
        allow_inf_nan=False,
        description="Amount in local currency (must be > 0 to be recorded)"
    )
    recipient: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Recipient identifier (name, phone or account)"
    )
    transaction_type: TransactionType = TransactionType.TRANSFER
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the transaction was authored (UTC)"
    )
    location: Optional[str] = None
    device_id: str = Field(..., min_length=1, max_length=128)

    fraud_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Risk estimate from the scoring engine"
    )
    status: TransactionStatus = TransactionStatus.PENDING

    _score_assigned: bool = PrivateAttr(default=False)

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        return _as_utc(v)

    def __setattr__(self, name: str, value) -> None:
        if name == "fraud_score" and self._score_assigned:
            raise ValueError(
                f"Fraud score already assigned to transaction {self.transaction_id}"
            )
        super().__setattr__(name, value)

    def assign_fraud_score(self, score: float) -> None:
        """Attach the engine's score. Allowed exactly once."""
        self.fraud_score = score
        self._score_assigned = True

    @property
    def hour(self) -> int:
        """Hour of day (UTC) the transaction was authored."""
        return self.timestamp.hour


# =============================================================================
# LEDGER BOOKKEEPING
# =============================================================================

class DailyLimit(BaseModel):
    """
    Running total of a user's transactions for one calendar day (UTC).

    Reset, not incremented, when a transaction lands on a different day.
    """
    model_config = ConfigDict(validate_assignment=True)

    user_id: UUID
    date: date
    total_amount: float = Field(default=0.0, ge=0.0)
    transaction_count: int = Field(default=0, ge=0)


class TransactionReceipt(BaseModel):
    """Receipt handed to the user after a transaction is recorded."""

    transaction_id: UUID
    timestamp: datetime
    amount: float
    recipient: str
    status: TransactionStatus
    confirmation_code: str = Field(
        ...,
        min_length=8,
        max_length=8,
        pattern="^[0-9A-F]{8}$",
        description="First 8 hex characters of the receipt hash, uppercase"
    )
    fraud_score: float


class OfflineTransaction(BaseModel):
    """
    Self-contained, time-bounded envelope for a transaction authored
    without connectivity.

    encrypted_data is the cipher output over the canonical JSON of the
    transaction; signature is the integrity tag over that same plaintext.
    """

    transaction: Transaction
    encrypted_data: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=64, max_length=64)
    expires_at: datetime

    @field_validator('expires_at')
    @classmethod
    def normalize_expiry(cls, v: datetime) -> datetime:
        return _as_utc(v)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) > self.expires_at
