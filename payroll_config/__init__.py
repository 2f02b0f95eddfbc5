"""
payroll_config -- single public entrypoint for statutory rate tables.

Responsibility:
    ``get_active_rates()`` is the only way runtime code obtains rate
    tables.  Calculators take the table they need as an explicit
    argument and default to the active snapshot, so no calculator reads
    a file or a module-level constant.

Invariants enforced:
    - Snapshot semantics: a loaded ``StatutoryRateTables`` is immutable.
      ``clear_rate_cache()`` followed by another ``get_active_rates()``
      produces a NEW object; anything already holding the old snapshot
      keeps computing with it.
    - Each path is loaded at most once per process until the cache is
      cleared.

Failure modes:
    - ``FileNotFoundError`` -- the rate set file does not exist.
    - ``KeyError`` / ``ValueError`` -- malformed rate set.
    - ``RateTableError`` -- structurally invalid slab or rate.

Audit relevance:
    Every load emits a ``payroll_rates_loaded`` record carrying the
    version, effective date and SHA-256 checksum of the source content.
"""

from __future__ import annotations

import threading
from pathlib import Path

from payroll_config.loader import load_rate_tables
from payroll_config.schema import StatutoryRateTables
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_RATES_PATH = Path(__file__).parent / "sets" / "statutory_rates.yaml"

_cache: dict[Path, StatutoryRateTables] = {}
_cache_lock = threading.Lock()


def get_active_rates(path: Path | str | None = None) -> StatutoryRateTables:
    """Return the rate snapshot for ``path`` (default: the packaged set).

    Args:
        path: Override rate set file.

    Returns:
        Frozen ``StatutoryRateTables``.
    """
    resolved = Path(path).resolve() if path is not None else DEFAULT_RATES_PATH.resolve()
    with _cache_lock:
        tables = _cache.get(resolved)
        if tables is None:
            tables = load_rate_tables(resolved)
            _cache[resolved] = tables
            _logger.info(
                "payroll_rates_loaded",
                extra={
                    "rates_version": tables.version,
                    "effective_from": tables.effective_from.isoformat(),
                    "checksum": tables.checksum,
                    "source": str(resolved),
                    "pt_jurisdictions": len(tables.professional_tax),
                    "tax_regimes": len(tables.income_tax.regimes),
                },
            )
    return tables


def clear_rate_cache() -> None:
    """Drop cached snapshots so the next call reloads from disk."""
    with _cache_lock:
        _cache.clear()


__all__ = [
    "DEFAULT_RATES_PATH",
    "StatutoryRateTables",
    "clear_rate_cache",
    "get_active_rates",
]
