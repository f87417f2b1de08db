import json
import logging

from promocode.core.logging_setup import JsonFormatter
from promocode.core.request_context import (
    RequestContext,
    bind_request_context,
    current_context,
    reset_request_context,
)


def _record(msg, *args, **extra):
    record = logging.LogRecord("promocode.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_carries_request_context_and_extras():
    token = bind_request_context(request_id="req-1", tenant_id="t-1", user_id="u-1")
    try:
        line = JsonFormatter().format(_record("promo code %s", "updated", object_id="abc", status_code=200))
    finally:
        reset_request_context(token)

    payload = json.loads(line)
    assert payload["message"] == "promo code updated"
    assert payload["request_id"] == "req-1"
    assert payload["tenant_id"] == "t-1"
    assert payload["user_id"] == "u-1"
    assert payload["object_id"] == "abc"
    assert payload["status_code"] == 200
    assert "cache_key" not in payload


def test_secrets_are_masked():
    payload = json.loads(JsonFormatter().format(_record("login password=hunter2 token: abc.def")))
    assert "hunter2" not in payload["message"]
    assert "abc.def" not in payload["message"]


def test_nested_binding_is_undone_in_order():
    outer = bind_request_context(request_id="req-1")
    inner = bind_request_context(user_id="u-1")
    assert current_context() == RequestContext(request_id="req-1", user_id="u-1")

    reset_request_context(inner)
    assert current_context() == RequestContext(request_id="req-1")

    reset_request_context(outer)
    assert current_context() == RequestContext()


async def test_request_id_is_echoed_and_released(client):
    resp = await client.get("/health", headers={"X-Request-ID": "req-42"})

    assert resp.headers["X-Request-ID"] == "req-42"
    assert current_context() == RequestContext()
