"""Parameter sets and request-body encoding for Bot API calls.

A *parameter set* is an ordered ``dict`` of ``str -> value | None``.  Before
encoding, every value is normalized into a :class:`Param`, a small tagged
union, and the encoders branch on :attr:`Param.kind`:

- ``STRING`` / ``INTEGER`` are sent as-is;
- ``BOOLEAN`` is sent as ``true`` / ``false``;
- ``RECORD`` (pydantic models, dicts, lists) is sent as compact JSON;
- ``ATTACHMENT`` (:class:`InputFile`) is sent as a file part.

A single attachment anywhere in the set switches the whole request to
``multipart/form-data``; otherwise it is ``application/x-www-form-urlencoded``.
"""

from __future__ import annotations

import dataclasses
import enum
import json
import mimetypes
import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from pydantic import BaseModel
from urllib3 import encode_multipart_formdata

from sdk.exceptions import InvalidRequest

FORM_URLENCODED = "application/x-www-form-urlencoded"

ParameterSet = Mapping[str, Any]


@dataclasses.dataclass(frozen=True)
class InputFile:
    """Raw binary content to upload (the attachment marker).

    Pass a plain ``str`` instead to reference a file already known to the
    server by ``file_id`` or by URL.
    """

    data: bytes
    filename: str = "file"
    mime_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: str, mime_type: Optional[str] = None) -> "InputFile":
        with open(path, "rb") as fh:
            data = fh.read()
        filename = os.path.basename(path)
        return cls(data, filename, mime_type or mimetypes.guess_type(filename)[0])

    def __repr__(self) -> str:
        return f"InputFile(filename={self.filename!r}, size={len(self.data)})"


class Kind(enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    RECORD = "record"
    ATTACHMENT = "attachment"


@dataclasses.dataclass(frozen=True)
class Param:
    kind: Kind
    value: Any


def to_param(value: Any) -> Param:
    """Tag a raw parameter value.

    ``bool`` is checked before ``int`` because it is a subclass of it.
    """
    if isinstance(value, InputFile):
        return Param(Kind.ATTACHMENT, value)
    if isinstance(value, bool):
        return Param(Kind.BOOLEAN, value)
    if isinstance(value, int):
        return Param(Kind.INTEGER, value)
    if isinstance(value, str):
        return Param(Kind.STRING, value)
    if isinstance(value, enum.Enum):
        return to_param(value.value)
    return Param(Kind.RECORD, value)


def merge(*parameter_sets: Optional[ParameterSet]) -> Dict[str, Param]:
    """Merge *parameter_sets* left to right, dropping ``None`` values.

    A later set overrides a key from an earlier one, including overriding it
    with ``None`` to remove it.
    """
    merged: Dict[str, Any] = {}
    for params in parameter_sets:
        if params:
            merged.update(params)
    return {key: to_param(value) for key, value in merged.items() if value is not None}


def has_attachments(params: Mapping[str, Param]) -> bool:
    return any(p.kind is Kind.ATTACHMENT for p in params.values())


def _record_json(value: Any) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
    elif isinstance(value, (list, tuple)):
        value = [
            v.model_dump(mode="json", by_alias=True, exclude_none=True) if isinstance(v, BaseModel) else v
            for v in value
        ]
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _scalar(param: Param) -> str:
    if param.kind is Kind.BOOLEAN:
        return "true" if param.value else "false"
    if param.kind is Kind.RECORD:
        return _record_json(param.value)
    return str(param.value)


def encode(params: Mapping[str, Param]) -> tuple[bytes, str]:
    """Encode *params* into ``(body, content_type)``.

    Raises:
        InvalidRequest: If a record value cannot be serialized.
    """
    try:
        if has_attachments(params):
            fields: Dict[str, Any] = {}
            for key, param in params.items():
                if param.kind is Kind.ATTACHMENT:
                    upload = param.value
                    mime = upload.mime_type or mimetypes.guess_type(upload.filename)[0] or "application/octet-stream"
                    fields[key] = (upload.filename, upload.data, mime)
                else:
                    fields[key] = _scalar(param)
            return encode_multipart_formdata(fields)

        body = urlencode([(key, _scalar(param)) for key, param in params.items()])
        return body.encode("utf-8"), FORM_URLENCODED
    except (TypeError, ValueError) as exc:
        raise InvalidRequest(f"Could not encode parameters: {exc}") from exc


def describe(params: Mapping[str, Param]) -> str:
    """Human-readable payload for logs; uploads are summarised, not dumped."""
    if has_attachments(params):
        parts = [
            f"{key}={param.value!r}" if param.kind is Kind.ATTACHMENT else f"{key}={_scalar(param)}"
            for key, param in params.items()
        ]
        return "multipart/form-data: " + ", ".join(parts)
    return urlencode([(key, _scalar(param)) for key, param in params.items()])
