"""State machine for service lifecycle: IDLE -> STARTING -> RUNNING -> STOPPING -> IDLE.

STARTING -> IDLE is the failure edge (backend connect or bind failed).
"""

import enum
import logging

logger = logging.getLogger(__name__)


class ServiceState(str, enum.Enum):
    """Service lifecycle states."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


# Valid transitions: from_state -> set of allowed to_states
_TRANSITIONS: dict[ServiceState, set[ServiceState]] = {
    ServiceState.IDLE: {ServiceState.STARTING},
    ServiceState.STARTING: {ServiceState.RUNNING, ServiceState.IDLE},
    ServiceState.RUNNING: {ServiceState.STOPPING},
    ServiceState.STOPPING: {ServiceState.IDLE},
}


class ServiceStateMachine:
    """Current lifecycle state of one service. Not locked: the controller serializes callers."""

    def __init__(self) -> None:
        self._current = ServiceState.IDLE

    @property
    def current(self) -> ServiceState:
        return self._current

    def can_transition_to(self, to_state: ServiceState) -> bool:
        return to_state in _TRANSITIONS[self._current]

    def transition(self, to_state: ServiceState) -> bool:
        """Move to to_state; an illegal move is logged and leaves the state unchanged."""
        previous = self._current
        if not self.can_transition_to(to_state):
            logger.warning("Ignoring lifecycle move %s -> %s", previous.value, to_state.value)
            return False
        self._current = to_state
        logger.debug("Service %s -> %s", previous.value, to_state.value)
        return True

    def is_idle(self) -> bool:
        return self._current == ServiceState.IDLE

    def is_running(self) -> bool:
        """True when the listener is serving and the backend pool is open."""
        return self._current == ServiceState.RUNNING
