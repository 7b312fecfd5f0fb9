"""
Request lifecycle tracking.

Each gateway request moves through a fixed set of stages.
Invalid transitions are rejected, like any other state machine.
"""

import enum
import itertools


class RequestStage(str, enum.Enum):
    RECEIVED = "RECEIVED"
    PARSED = "PARSED"
    AUTHORIZED = "AUTHORIZED"
    EXECUTED = "EXECUTED"
    RESPONDED = "RESPONDED"
    RESPONDED_WITH_ERROR = "RESPONDED_WITH_ERROR"


# Valid stage transitions; both RESPONDED states are terminal
VALID_TRANSITIONS: dict[RequestStage, set[RequestStage]] = {
    RequestStage.RECEIVED: {RequestStage.PARSED, RequestStage.RESPONDED_WITH_ERROR},
    RequestStage.PARSED: {RequestStage.AUTHORIZED, RequestStage.RESPONDED_WITH_ERROR},
    RequestStage.AUTHORIZED: {RequestStage.EXECUTED, RequestStage.RESPONDED_WITH_ERROR},
    RequestStage.EXECUTED: {RequestStage.RESPONDED, RequestStage.RESPONDED_WITH_ERROR},
    RequestStage.RESPONDED: set(),
    RequestStage.RESPONDED_WITH_ERROR: set(),
}

_request_ids = itertools.count(1)


class RequestTrace:

    def __init__(self, method: str, path: str):
        self.id = next(_request_ids)
        self.method = method
        self.path = path
        self.stage = RequestStage.RECEIVED

    def can_transition_to(self, stage: RequestStage) -> bool:
        return stage in VALID_TRANSITIONS.get(self.stage, set())

    def advance(self, stage: RequestStage) -> None:
        if not self.can_transition_to(stage):
            raise ValueError(
                f"Request {self.id}: cannot move from "
                f"{self.stage.value} to {stage.value}"
            )
        self.stage = stage

    def executed(self) -> None:
        """
        The handler returned a response.

        Parsing and authorization happen inside FastAPI before the
        handler runs, so a returned response proves both.
        """
        for stage in (RequestStage.PARSED, RequestStage.AUTHORIZED, RequestStage.EXECUTED):
            self.advance(stage)

    def finish(self, status_code: int) -> RequestStage:
        """Move to a terminal stage according to the response status."""
        if status_code >= 400:
            self.advance(RequestStage.RESPONDED_WITH_ERROR)
        else:
            self.advance(RequestStage.RESPONDED)
        return self.stage

    def __repr__(self) -> str:
        return f"<RequestTrace {self.id} {self.method} {self.path} ({self.stage.value})>"

