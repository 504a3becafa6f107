"""Transaction ledger package."""

from safebank.ledger.manager import TransactionLedger, generate_confirmation_code
from safebank.ledger.offline import OfflineEnvelopeCodec, canonical_json
from safebank.ledger.state import can_transition, transition

__all__ = [
    "OfflineEnvelopeCodec",
    "TransactionLedger",
    "can_transition",
    "canonical_json",
    "generate_confirmation_code",
    "transition",
]
