"""
Tests for the embedding worker message shapes.
"""

import pytest
from pydantic import ValidationError

from parasocial_memory.vector.messages import (
    EmbedError,
    EmbedProgress,
    EmbedRequest,
    EmbedResult,
    parse_reply,
)


def test_request_round_trips_as_dict():
    request = EmbedRequest(request_id="r1", text="hello")
    assert request.model_dump() == {"type": "embed", "request_id": "r1", "text": "hello"}
    assert EmbedRequest.model_validate(request.model_dump()) == request


def test_request_rejects_unknown_fields_and_bad_types():
    with pytest.raises(ValidationError):
        EmbedRequest.model_validate({"type": "embed", "request_id": "r1", "text": "hi", "extra": 1})
    with pytest.raises(ValidationError):
        EmbedRequest.model_validate({"type": "embed", "request_id": "r1", "text": 42})
    with pytest.raises(ValidationError):
        EmbedRequest(request_id="   ", text="hi")


def test_parse_reply_discriminates_on_type():
    assert isinstance(parse_reply({"type": "result", "request_id": "r1", "embedding": [0.1, 0.2]}), EmbedResult)
    assert isinstance(parse_reply({"type": "error", "request_id": "r1", "error": "boom"}), EmbedError)
    assert isinstance(parse_reply({"type": "progress", "status": "loading", "model": "m"}), EmbedProgress)


def test_parse_reply_rejects_malformed():
    for raw in [
        {"type": "unknown"},
        {"type": "result", "request_id": "r1"},
        {"type": "result", "request_id": "r1", "embedding": "not a list"},
        {"type": "progress", "status": "downloading", "model": "m"},
        {"request_id": "r1", "embedding": [1.0]},
        "result",
    ]:
        with pytest.raises(ValidationError):
            parse_reply(raw)
