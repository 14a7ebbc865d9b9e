"""
Messages exchanged with the embedding worker.
Closed set of tagged shapes; anything else is rejected at the boundary.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class EmbedRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    type: Literal["embed"] = "embed"
    request_id: str
    text: str

    @field_validator('request_id')
    @classmethod
    def request_id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('request_id cannot be empty')
        return v


class EmbedProgress(BaseModel):
    model_config = ConfigDict(extra='forbid')

    type: Literal["progress"] = "progress"
    status: Literal["loading", "ready", "failed"]
    model: str
    detail: Optional[str] = None


class EmbedResult(BaseModel):
    model_config = ConfigDict(extra='forbid')

    type: Literal["result"] = "result"
    request_id: str
    embedding: List[float]


class EmbedError(BaseModel):
    model_config = ConfigDict(extra='forbid')

    type: Literal["error"] = "error"
    request_id: str
    error: str


WorkerReply = Annotated[Union[EmbedProgress, EmbedResult, EmbedError], Field(discriminator="type")]

_reply_adapter = TypeAdapter(WorkerReply)


def parse_reply(data) -> Union[EmbedProgress, EmbedResult, EmbedError]:
    """Validate a raw reply from the worker. Raises pydantic.ValidationError."""
    return _reply_adapter.validate_python(data)
