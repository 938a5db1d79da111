"""
trade_import.keys - Business-key allocation within one import run.

Stateful like the sequence allocation it replaces: every key handed out
is remembered so two rows in the same batch never collide.
"""

from __future__ import annotations


class KeyAllocator:
    """Hands out unique shipment numbers / contract numbers for one run."""

    def __init__(self, fallback_prefix: str):
        self._prefix = fallback_prefix
        self._used: set[str] = set()
        self._generated = 0

    def __contains__(self, key: str) -> bool:
        return key in self._used

    def fallback(self) -> str:
        """Deterministic placeholder key: PREFIX-0001, PREFIX-0002, …"""
        self._generated += 1
        return f"{self._prefix}-{self._generated:04d}"

    def allocate(self, base: str, contract_no: str = "") -> str:
        """
        Reserve ``base`` or, if taken, a variant of it.

        Collisions are resolved by first appending the contract number
        (when it differs from the base), then a numeric suffix.
        """
        candidate = base
        if candidate in self._used and contract_no and base != contract_no:
            candidate = f"{base}-{contract_no}"

        stem, counter = candidate, 1
        while candidate in self._used:
            candidate = f"{stem}-{counter}"
            counter += 1

        self._used.add(candidate)
        return candidate
