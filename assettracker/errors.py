"""Error taxonomy for the AssetTracker stores.

Uniqueness conflicts on insert-if-absent paths are absorbed as no-ops
by the stores and never reach the caller; everything here is raised
before any row is written.
"""

from __future__ import annotations


class AssetTrackerError(Exception):
    """Base class for all AssetTracker errors."""


class ValidationError(AssetTrackerError, ValueError):
    """Input outside a closed enumeration, non-positive amount, or bad format."""


class NotFoundError(AssetTrackerError, LookupError):
    """A referenced asset, transaction or watchlist item does not exist."""


class ConstraintViolation(AssetTrackerError):
    """A write would break a uniqueness or reference constraint."""


class ArithmeticInconsistency(AssetTrackerError, ValueError):
    """A supplied total_amount does not equal quantity * price_per_unit."""
