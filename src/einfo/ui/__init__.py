"""Message printing and status indicator placement."""

from einfo.ui.indicator import IndicatorPlacer, compute_indent
from einfo.ui.printer import MessagePrinter

__all__ = ["IndicatorPlacer", "MessagePrinter", "compute_indent"]
