"""
Request Context Module

Per-call values (currently the correlation id) passed explicitly through
the call chain so log records of one request can be tied together.
"""

from dataclasses import dataclass
from typing import Optional
import uuid


CORRELATION_ID_HEADER = "X-Correlation-ID"


@dataclass(frozen=True)
class RequestContext:
    """Immutable context created once per incoming request"""
    correlation_id: str

    @classmethod
    def new(cls) -> 'RequestContext':
        """Create a context with a freshly generated correlation id"""
        return cls(correlation_id=str(uuid.uuid4()))

    @classmethod
    def from_header(cls, value: Optional[str]) -> 'RequestContext':
        """Reuse the caller's correlation id, or generate one when absent"""
        if value and value.strip():
            return cls(correlation_id=value.strip())
        return cls.new()
