"""Shared types for davsync.

This module defines enums used by both the sync engine and the CLI.
"""

from __future__ import annotations

from enum import Enum


class ComparisonPolicy(str, Enum):
    """Rule deciding whether a local file already matches its remote copy.

    SIZE skips when the remote size equals the local size.
    SIZE_ETAG additionally requires the local MD5 to match the remote ETag.
    """

    SIZE = "size"
    SIZE_ETAG = "size+etag"

    @classmethod
    def parse(cls, value: str | ComparisonPolicy) -> ComparisonPolicy:
        """Parse a policy name, accepting the long-form aliases.

        Args:
            value: "size", "size+etag", "size-only" or "size+checksum".

        Returns:
            The matching policy.

        Raises:
            ValueError: If the name is unknown.
        """
        if isinstance(value, cls):
            return value
        normalized = value.strip().lower()
        aliases = {
            "size-only": cls.SIZE,
            "size+checksum": cls.SIZE_ETAG,
        }
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)
