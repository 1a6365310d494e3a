"""
Token Ledger

A fungible-token ledger with ERC20-style transfer, approval, mint and burn
semantics, strict u64 bookkeeping, and a single persisted token record.
"""

__version__ = "1.0.0"
