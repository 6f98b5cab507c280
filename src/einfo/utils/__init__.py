"""Utility modules for einfo."""

from einfo.utils.logging import MessageLog, rotate_logs, warn

__all__ = ["MessageLog", "rotate_logs", "warn"]
