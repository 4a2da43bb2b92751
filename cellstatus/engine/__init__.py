"""Service lifecycle: state machine, HTTP listener thread and the controller tying them together."""

from cellstatus.engine.listener import HttpListener
from cellstatus.engine.service import CellStatusService
from cellstatus.engine.state_machine import ServiceState, ServiceStateMachine

__all__ = ["CellStatusService", "HttpListener", "ServiceState", "ServiceStateMachine"]
