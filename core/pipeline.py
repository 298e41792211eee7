"""Shared request/processor/producer scaffolding for export commands."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .cli_errors import CLIError, ExitCode


RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")
T = TypeVar("T")
R = TypeVar("R")


@dataclass
class ResultEnvelope(Generic[ResultT]):
    status: str
    payload: Optional[ResultT] = None
    diagnostics: Optional[dict[str, Any]] = None

    def ok(self) -> bool:
        return self.status.lower() == "success"

    def unwrap(self) -> ResultT:
        """Return payload or raise ValueError. Use after ok() check."""
        if self.payload is None:
            msg = (self.diagnostics or {}).get("message", "No payload")
            raise ValueError(msg)
        return self.payload

    def exit_code(self) -> int:
        if self.ok():
            return int(ExitCode.SUCCESS)
        return int((self.diagnostics or {}).get("code", ExitCode.USAGE))


class RequestConsumer(Generic[RequestT]):
    """Generic consumer that hands back the request it was built with."""

    def __init__(self, request: RequestT) -> None:
        self._request = request

    def consume(self) -> RequestT:  # pragma: no cover - trivial
        return self._request


class BaseProducer:
    """Base class for pipeline producers with common error handling.

    Subclasses override _produce_success(); failed envelopes print their
    diagnostic message and nothing else.
    """

    def produce(self, result: ResultEnvelope) -> None:
        if not result.ok():
            msg = (result.diagnostics or {}).get("message")
            if msg:
                print(msg)
            return
        if result.payload is not None:
            self._produce_success(result.payload, result.diagnostics)

    def _produce_success(self, payload: Any, diagnostics: Optional[Dict[str, Any]]) -> None:
        raise NotImplementedError("Subclass must implement _produce_success")

    @staticmethod
    def print_logs(logs: List[str]) -> None:
        for line in logs:
            print(line)


class SafeProcessor(Generic[T, R]):
    """Base processor that turns exceptions into error envelopes.

    CLIError subclasses keep their exit code in diagnostics["code"]; anything
    else is reported with the generic error code.
    """

    def process(self, payload: T) -> ResultEnvelope[R]:
        try:
            result = self._process_safe(payload)
            return ResultEnvelope(status="success", payload=result)
        except CLIError as e:
            return ResultEnvelope(status="error", diagnostics={"message": e.message, "code": int(e.code)})
        except Exception as e:
            return ResultEnvelope(status="error", diagnostics={"message": str(e), "code": int(ExitCode.ERROR)})

    def _process_safe(self, payload: T) -> R:
        raise NotImplementedError("Subclass must implement _process_safe")


def run_pipeline(request: Any, processor: SafeProcessor, producer: BaseProducer) -> int:
    """Process a request, produce its output, and return a CLI exit code."""
    envelope = processor.process(request)
    producer.produce(envelope)
    return envelope.exit_code()
