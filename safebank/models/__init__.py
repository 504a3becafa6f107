"""
Data Models Package

This package contains all Pydantic models used in SafeBank core.
All data flowing between the scoring engine, the ledger and their
callers conforms to these schemas.
"""

from safebank.models.transaction import (
    BehavioralProfile,
    DailyLimit,
    DeviceInfo,
    OfflineTransaction,
    Transaction,
    TransactionReceipt,
    TransactionStatus,
    TransactionType,
    UserProfile,
    utc_now,
)
from safebank.models.risk import (
    FraudAnalysisResult,
    FraudRecommendation,
    RiskFactor,
    RiskFactorType,
)
from safebank.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "BehavioralProfile",
    "DailyLimit",
    "DeviceInfo",
    "OfflineTransaction",
    "Transaction",
    "TransactionReceipt",
    "TransactionStatus",
    "TransactionType",
    "UserProfile",
    "utc_now",
    # Risk models
    "FraudAnalysisResult",
    "FraudRecommendation",
    "RiskFactor",
    "RiskFactorType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
