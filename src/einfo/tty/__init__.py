"""Terminal probing: raw sessions, CPR queries and capability grading."""

from einfo.tty.base import (
    CPRReply,
    CPRReplyError,
    CPRTimeoutError,
    IndicatorRequest,
    NotATerminalError,
    TerminalError,
    TerminalSettingsError,
    TerminalState,
    TTYLevel,
)
from einfo.tty.cpr import CPRQuery, parse_cpr, query_cursor_position
from einfo.tty.grade import CapabilityGrader, query_window_size
from einfo.tty.session import RawTTYSession

__all__ = [
    "CPRQuery",
    "CPRReply",
    "CPRReplyError",
    "CPRTimeoutError",
    "CapabilityGrader",
    "IndicatorRequest",
    "NotATerminalError",
    "RawTTYSession",
    "TTYLevel",
    "TerminalError",
    "TerminalSettingsError",
    "TerminalState",
    "parse_cpr",
    "query_cursor_position",
    "query_window_size",
]
