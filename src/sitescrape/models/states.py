"""Runner state machine definitions."""

from enum import Enum


class RunState(str, Enum):
    """Phases of one ``Runner.run()`` call."""

    IDLE = "IDLE"
    FILTER_BUILDING = "FILTER_BUILDING"
    SINKS_OPENING = "SINKS_OPENING"
    SESSION_LAUNCHING = "SESSION_LAUNCHING"
    SCRAPING = "SCRAPING"
    SESSION_CLOSING = "SESSION_CLOSING"
    SINKS_CLOSING = "SINKS_CLOSING"
    DONE = "DONE"
    FAILED = "FAILED"


# Terminal states
TERMINAL_STATES = {RunState.DONE, RunState.FAILED}

# Normal transitions (FAILED is reachable from any non-terminal state)
STATE_TRANSITIONS: dict[RunState, list[RunState]] = {
    RunState.IDLE: [RunState.FILTER_BUILDING, RunState.SINKS_OPENING],
    RunState.FILTER_BUILDING: [RunState.SINKS_OPENING],
    RunState.SINKS_OPENING: [RunState.SESSION_LAUNCHING, RunState.SINKS_CLOSING],
    RunState.SESSION_LAUNCHING: [RunState.SCRAPING, RunState.SESSION_CLOSING],
    RunState.SCRAPING: [RunState.SESSION_CLOSING],
    RunState.SESSION_CLOSING: [RunState.SESSION_LAUNCHING, RunState.SINKS_CLOSING],
    RunState.SINKS_CLOSING: [RunState.DONE],
}


def can_transition(current: RunState, new: RunState) -> bool:
    """Return True if *current* -> *new* is a legal transition."""
    if new == RunState.FAILED:
        return current not in TERMINAL_STATES
    return new in STATE_TRANSITIONS.get(current, [])
