"""Domain layer — locker pools, custody records, OTPs, and the ledger.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
