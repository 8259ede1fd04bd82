# tests/test_response_writer.py
from __future__ import annotations

import base64
import json

import pytest

from pylon.adapter.response_writer import (
    DEFAULT_CONTENT_TYPE,
    ALBResponseWriter,
    GatewayResponseWriter,
    ResponseWriter,
    WriterState,
)
from pylon.adapter.text_classifier import TextClassifier
from pylon.schemas.output_schema import ALBTargetGroupResponse, GatewayResponse


@pytest.fixture()
def classifier() -> TextClassifier:
    return TextClassifier()


@pytest.fixture(params=[GatewayResponseWriter, ALBResponseWriter], ids=["gateway", "alb"])
def writer(request: pytest.FixtureRequest, classifier: TextClassifier) -> ResponseWriter:
    return request.param(classifier)


def test_created_json_scenario(classifier: TextClassifier) -> None:
    w = GatewayResponseWriter(classifier)
    w.header().set("Content-Type", "application/json")
    w.write_header(201)
    assert w.write(b'{"ok":true}') == len(b'{"ok":true}')

    resp = w.finish()

    assert isinstance(resp, GatewayResponse)
    assert resp.status_code == 201
    assert resp.headers == {"Content-Type": "application/json"}
    assert resp.body == '{"ok":true}'
    assert resp.is_base64_encoded is False


def test_first_write_implies_200(writer: ResponseWriter) -> None:
    writer.write(b"hello")
    assert writer.state is WriterState.COMMITTED

    resp = writer.finish()
    assert resp.status_code == 200
    assert resp.body == "hello"


def test_write_header_first_call_wins(writer: ResponseWriter) -> None:
    writer.write_header(404)
    writer.write_header(500)
    writer.write(b"x")

    assert writer.finish().status_code == 404


def test_write_header_after_implicit_200_is_ignored(writer: ResponseWriter) -> None:
    writer.write(b"x")
    writer.write_header(500)

    assert writer.finish().status_code == 200


def test_header_mutations_after_commit_are_ignored(writer: ResponseWriter) -> None:
    writer.header().set("X-Before", "1")
    writer.write_header(200)
    writer.header().set("X-After", "2")
    writer.header().set("Content-Type", "image/png")
    writer.write(b"text body")

    resp = writer.finish()
    assert resp.headers == {"X-Before": "1", "Content-Type": DEFAULT_CONTENT_TYPE}
    assert resp.is_base64_encoded is False


def test_last_header_value_wins(writer: ResponseWriter) -> None:
    h = writer.header()
    h.add("X-Trace", "first")
    h.add("X-Trace", "second")
    h.add("x-trace", "third")
    writer.write(b"")

    assert writer.finish().headers["X-Trace"] == "third"


def test_default_content_type_when_unset(writer: ResponseWriter) -> None:
    writer.write(b"plain")

    resp = writer.finish()
    assert resp.headers["Content-Type"] == "text/plain; charset=utf-8"
    assert resp.is_base64_encoded is False
    assert resp.body == "plain"


def test_default_content_type_when_empty(writer: ResponseWriter) -> None:
    writer.header().set("Content-Type", "")
    writer.write_header(204)

    assert writer.finish().headers["Content-Type"] == DEFAULT_CONTENT_TYPE


def test_binary_body_is_base64_encoded(writer: ResponseWriter) -> None:
    payload = bytes(range(256))
    writer.header().set("Content-Type", "application/octet-stream")
    writer.write(payload[:100])
    writer.write(payload[100:])

    resp = writer.finish()
    assert resp.is_base64_encoded is True
    assert resp.body == base64.b64encode(payload).decode("ascii")
    assert base64.b64decode(resp.body) == payload


def test_json_body_is_returned_verbatim(writer: ResponseWriter) -> None:
    payload = '{"name":"café","items":[1,2,3]}'.encode("utf-8")
    writer.header().set("Content-Type", "application/json; charset=utf-8")
    writer.write(payload)

    resp = writer.finish()
    assert resp.is_base64_encoded is False
    assert resp.body.encode("utf-8") == payload


def test_binary_bytes_without_content_type_are_sent_as_text(writer: ResponseWriter) -> None:
    jpeg_magic = bytes([0xFF, 0xD8, 0xFF])
    writer.write(jpeg_magic)

    resp = writer.finish()
    assert resp.status_code == 200
    assert resp.headers["Content-Type"] == DEFAULT_CONTENT_TYPE
    assert resp.is_base64_encoded is False
    assert resp.body == "\ufffd\ufffd\ufffd"
    assert json.loads(resp.model_dump_json(by_alias=True))["body"] == "\ufffd\ufffd\ufffd"


def test_finish_without_any_write_has_no_committed_status(writer: ResponseWriter) -> None:
    writer.header().set("Content-Type", "application/json")

    resp = writer.finish()
    assert writer.state is WriterState.FINISHED
    assert resp.status_code == 0
    assert resp.headers == {}
    assert resp.body == ""


def test_finish_is_idempotent_and_response_is_frozen(writer: ResponseWriter) -> None:
    writer.write(b"once")
    first = writer.finish()

    assert writer.finish() is first
    with pytest.raises(Exception):
        first.status_code = 500  # type: ignore[misc]


def test_write_after_finish_is_ignored(writer: ResponseWriter) -> None:
    writer.write(b"done")
    resp = writer.finish()

    assert writer.write(b"late") == 0
    assert writer.finish().body == "done"
    assert resp.body == "done"


def test_header_table_is_created_lazily_and_shared() -> None:
    w = GatewayResponseWriter(TextClassifier())
    h = w.header()
    h.set("X-One", "1")

    assert w.header() is h
    assert w.header().get("x-one") == "1"


def test_injected_classifier_controls_encoding() -> None:
    w = GatewayResponseWriter(TextClassifier(["image/.*"]))
    w.header().set("Content-Type", "text/plain")
    w.write(b"abc")

    resp = w.finish()
    assert resp.is_base64_encoded is True
    assert resp.body == "YWJj"


def test_alb_status_description_not_found(classifier: TextClassifier) -> None:
    w = ALBResponseWriter(classifier)
    w.write_header(404)
    w.write(b"missing")

    resp = w.finish()
    assert isinstance(resp, ALBTargetGroupResponse)
    assert resp.status_code == 404
    assert resp.status_description == "404 Not Found"


def test_alb_status_description_follows_first_commit(classifier: TextClassifier) -> None:
    w = ALBResponseWriter(classifier)
    w.write(b"ok")
    w.write_header(503)

    assert w.finish().status_description == "200 OK"


def test_to_event_uses_aws_field_names(classifier: TextClassifier) -> None:
    w = ALBResponseWriter(classifier)
    w.header().set("x_custom_header", "v")
    w.write_header(201)

    event = w.finish().to_event()
    assert event == {
        "statusCode": 201,
        "statusDescription": "201 Created",
        "headers": {"X_custom_header": "v", "Content-Type": DEFAULT_CONTENT_TYPE},
        "body": "",
        "isBase64Encoded": False,
    }


def test_gateway_to_event_has_no_status_description(classifier: TextClassifier) -> None:
    w = GatewayResponseWriter(classifier)
    w.write(b"hi")

    event = w.finish().to_event()
    assert set(event) == {"statusCode", "headers", "body", "isBase64Encoded"}


def test_default_classifier_is_process_wide(monkeypatch: pytest.MonkeyPatch) -> None:
    import pylon.adapter.response_writer as rw_mod

    shared = TextClassifier(["application/octet-stream"])
    monkeypatch.setattr(rw_mod, "get_text_classifier", lambda: shared)

    w = GatewayResponseWriter()
    w.header().set("Content-Type", "application/octet-stream")
    w.write(b"\x00\x01")

    resp = w.finish()
    assert resp.is_base64_encoded is False
