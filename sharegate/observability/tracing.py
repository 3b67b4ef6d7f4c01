"""Trace ids, spans and structured events.

A workflow instance id doubles as its trace id, so every event emitted while
the instance runs (including after it is resumed by another process) can be
correlated.

Events are written as one JSON object per line on stdout.
"""

from __future__ import annotations

import json
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class Span:
    name: str
    trace_id: str | None
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    start_ns: int = field(default_factory=time.time_ns)
    end_ns: int | None = None
    status: str = 'ok'
    attributes: dict[str, Any] = field(default_factory=dict)

    def end(self) -> None:
        self.end_ns = time.time_ns()

    @property
    def duration_ms(self) -> float | None:
        if self.end_ns is None:
            return None
        return (self.end_ns - self.start_ns) / 1_000_000.0


def new_trace_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def traced(name: str, *, trace_id: str | None, **attributes: Any) -> Iterator[Span]:
    """Time an outbound call and emit `span.end` when it finishes, failed or not.

    Exceptions propagate; the span records the exception type as its status.
    """
    span = Span(name=name, trace_id=trace_id, attributes=dict(attributes))
    try:
        yield span
    except Exception as exc:
        span.status = type(exc).__name__
        raise
    finally:
        span.end()
        log_event('span.end', trace_id=trace_id, span=span)


def log_event(event: str, *, trace_id: str | None, span: Span | None = None, **fields: Any) -> None:
    payload: dict[str, Any] = {'event': event, 'trace_id': trace_id, **fields}
    if span is not None:
        payload['span'] = {
            'name': span.name,
            'span_id': span.span_id,
            'status': span.status,
            'duration_ms': span.duration_ms,
            'attributes': span.attributes,
        }
    # Datetimes and enums in fields are rendered with str().
    print(json.dumps(payload, ensure_ascii=False, default=str))
