"""
Per-call conversion state.

A ConversionContext is created at the start of every translation call and
dropped when it returns. It owns the only mutable bookkeeping the
translator needs: which unknown enum values were already reported and the
list of recovered problems handed back to the caller.
"""

import logging
from typing import List, Optional, Set, Tuple

from utils.settings import TranslatorSettings

logger = logging.getLogger(__name__)


class GraphTranslationError(Exception):
    """Raised when a graph document cannot be translated"""
    pass


class ConversionContext:
    def __init__(self, settings: Optional[TranslatorSettings] = None):
        self.settings = settings or TranslatorSettings()
        self.warnings: List[str] = []
        self._reported_unknowns: Set[Tuple[str, str]] = set()

    def warn(self, message: str, level: int = logging.WARNING) -> None:
        logger.log(level, message)
        self.warnings.append(message)

    def report_unknown(self, table: str, value: str, fallback: str) -> None:
        """Report an unrecognized enum token once per distinct value."""
        signature = (table, value)
        if signature in self._reported_unknowns:
            return
        self._reported_unknowns.add(signature)
        self.warn(f"Unrecognized {table} '{value}', falling back to '{fallback}'")
