"""Operation context and the ambient store carrying it"""
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional
from collectors.base import TelemetryCollector


IAST_CONTEXT_KEY = "iast_context"


@dataclass
class Vulnerability:
    """Finding reported by a sink analyzer"""
    type: str
    evidence: Any
    channel: Optional[str] = None


@dataclass
class OperationContext:
    """One in-flight unit of monitored work"""
    operation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    telemetry_collector: Optional[TelemetryCollector] = None
    vulnerabilities: List[Vulnerability] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)


# Task-local: copied into asyncio tasks and contextvars.copy_context() runs
_store: ContextVar[Optional[Dict[str, Any]]] = ContextVar("iast_store", default=None)


def get_store() -> Optional[Dict[str, Any]]:
    """Store bound to the current thread / task, if any"""
    return _store.get()


def get_operation_context(store: Optional[Mapping[str, Any]]) -> Optional[OperationContext]:
    if not store:
        return None
    context = store.get(IAST_CONTEXT_KEY)
    return context if isinstance(context, OperationContext) else None


def get_telemetry_collector(context: Optional[OperationContext]) -> Optional[TelemetryCollector]:
    return context.telemetry_collector if context is not None else None


@contextmanager
def operation_scope(context: Optional[OperationContext] = None, **extra: Any) -> Iterator[OperationContext]:
    """Bind an operation context to the ambient store for the duration of the block"""
    context = context or OperationContext()
    token = _store.set({IAST_CONTEXT_KEY: context, **extra})
    try:
        yield context
    finally:
        _store.reset(token)
