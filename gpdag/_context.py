"""
_context.py
===========
Context managers for gpdag.

Provides clean, Pythonic context managers for temporarily changing state:
- Logging control (suppress/change levels)
- Warning control (suppress specific warnings)

All context managers properly restore state on exit, even if exceptions occur.
"""

import logging
import warnings
from contextlib import contextmanager
from typing import Optional, Type


# Every module logger in the package, by name.
_PACKAGE_LOGGERS = (
    "gpdag._topology",
    "gpdag._collection",
    "gpdag._dag",
    "gpdag._logging",
)


# ============================================================================ #
# Logging Context Managers
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Parameters
    ----------
    logger_name : str
        Name of the logger to suppress (e.g., 'gpdag._topology').
    level : int, default logging.CRITICAL
        Temporary logging level.

    Examples
    --------
    >>> # Silence per-tree multifurcation warnings while loading a sample
    >>> with suppress_logger('gpdag._topology'):
    ...     trees = [Topology(nwk) for nwk in newicks]

    >>> # Keep only warnings from DAG construction
    >>> with suppress_logger('gpdag._dag', logging.WARNING):
    ...     dag = GPDAG(collection)

    Notes
    -----
    - Exception-safe: Logger level restored even if exception raised
    - Nesting-safe: Can nest multiple suppress_logger contexts
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily suppress all gpdag logging.

    Parameters
    ----------
    level : int, default logging.CRITICAL
        Temporary logging level for every package logger.

    Examples
    --------
    >>> with quiet():
    ...     dag = GPDAG(RootedTreeCollection(newicks))

    >>> # Show only warnings during construction
    >>> with quiet(logging.WARNING):
    ...     dag = GPDAG(collection)
    """
    loggers = [logging.getLogger(name) for name in _PACKAGE_LOGGERS]
    original_levels = [lg.level for lg in loggers]

    try:
        for lg in loggers:
            lg.setLevel(level)
        yield
    finally:
        for lg, original in zip(loggers, original_levels):
            lg.setLevel(original)


# ============================================================================ #
# Warning Context Managers
# ============================================================================ #


@contextmanager
def suppress_warnings(category: Optional[Type[Warning]] = None):
    """
    Temporarily suppress warnings.

    Parameters
    ----------
    category : Type[Warning] or None, default None
        Warning category to suppress. If None, suppresses all warnings.

    Examples
    --------
    >>> with suppress_warnings(RuntimeWarning):
    ...     engine.run(dag.compute_likelihoods())

    Notes
    -----
    - Uses Python's warnings.catch_warnings() internally
    - Fully restores warning state on exit
    """
    with warnings.catch_warnings():
        if category is None:
            warnings.simplefilter("ignore")
        else:
            warnings.filterwarnings("ignore", category=category)
        yield
