"""
Per-request identity carried through logging.

The middleware binds the request id and resets it with the returned token
when the response is done. Values bound further down (the authenticated
user and tenant) live in the endpoint task's copy of the context and vanish
with it.
"""
from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RequestContext:
    request_id: str | None = None
    tenant_id: str | None = None
    user_id: str | None = None


_EMPTY = RequestContext()
_current: ContextVar[RequestContext] = ContextVar("promocode_request_context", default=_EMPTY)


def current_context() -> RequestContext:
    return _current.get()


def bind_request_context(
    *, request_id: str | None = None, tenant_id: str | None = None, user_id: str | None = None
) -> Token[RequestContext]:
    """Overlay the given non-empty fields on the current context."""
    fields = {"request_id": request_id, "tenant_id": tenant_id, "user_id": user_id}
    updated = replace(_current.get(), **{k: v for k, v in fields.items() if v is not None})
    return _current.set(updated)


def reset_request_context(token: Token[RequestContext]) -> None:
    _current.reset(token)
