"""
SafeBank Core - Source Package

Fraud scoring and transaction ledger for low-resource digital banking.

PRINCIPLES:
1. Every score is explainable (risk factors travel with it)
2. The ledger commits fully or not at all
3. Limits are enforced before anything is stored
4. Offline transactions are signed and expire
5. Every decision is auditable
"""

__version__ = "1.0.0"
__author__ = "SafeBank Team"
