"""Per-partition, per-day sequential identifiers"""

from .generator import IdentifierGenerator

__all__ = ["IdentifierGenerator"]
