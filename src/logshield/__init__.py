"""
logshield: Strip secrets and personal data from logs before they are shared.

This package provides an ordered, regex-based redaction engine with strict
mode gating, Luhn-checked card detection and an entropy fallback for
unknown secrets. Everything runs locally; no input ever leaves the process.
"""

__version__ = "0.1.0"

from logshield.engine import Engine, sanitize, scan
from logshield.catalog import load_catalog, default_catalog, RuleCatalog
from logshield.errors import LogShieldError, InputTooLarge, CatalogError
from logshield.models import SanitizeResult, ScanResult, MatchRecord, Tier

__all__ = [
    "Engine",
    "sanitize",
    "scan",
    "load_catalog",
    "default_catalog",
    "RuleCatalog",
    "LogShieldError",
    "InputTooLarge",
    "CatalogError",
    "SanitizeResult",
    "ScanResult",
    "MatchRecord",
    "Tier",
]
