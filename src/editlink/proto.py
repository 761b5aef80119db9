from __future__ import annotations

import json
import typing
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class ProtocolError(Exception):
    """Inbound frame that cannot be decoded into a known packet."""


class PacketType(str, Enum):
    EDITOR_COMMAND = "EDITOR_COMMAND"
    CLIENT_ACK = "CLIENT_ACK"


class EditorCommandKind(str, Enum):
    WRITE_FILE = "WRITE_FILE"
    APPLY_PATCH = "APPLY_PATCH"


class PayloadMode(str, Enum):
    OVERWRITE = "overwrite"
    DIFF = "diff"


class AckStatus(str, Enum):
    SUCCESS = "success"


class EditorCommandPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filePath")
    # Full file text for WRITE_FILE
    content: Optional[str] = Field(default=None)
    # SEARCH/REPLACE blocks for APPLY_PATCH
    diff: Optional[str] = Field(default=None)
    mode: Optional[PayloadMode] = Field(default=None)


class EditorCommandPacket(BaseModel):
    type: typing.Literal["EDITOR_COMMAND"] = Field(default="EDITOR_COMMAND")
    nonce: Optional[str] = Field(default=None)
    command: EditorCommandKind
    payload: EditorCommandPayload

    @property
    def target_path(self) -> str:
        return self.payload.file_path

    @property
    def content(self) -> str:
        return self.payload.content or ""

    @property
    def diff_text(self) -> str:
        return self.payload.diff or ""


class ClientAckPacket(BaseModel):
    type: typing.Literal["CLIENT_ACK"] = Field(default="CLIENT_ACK")
    nonce: str
    status: AckStatus = Field(default=AckStatus.SUCCESS)


Packet = Annotated[
    Union[EditorCommandPacket, ClientAckPacket],
    Field(discriminator="type"),
]

_packet_adapter: TypeAdapter[Any] = TypeAdapter(Packet)

_KNOWN_TYPES = {t.value for t in PacketType}


def decode_packet(data: Union[str, bytes]) -> Optional[Packet]:
    """
    Decode one JSON frame. Returns None for well-formed frames of some other
    protocol (unknown "type"); raises ProtocolError for anything malformed.
    """
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Frame is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ProtocolError(f"Frame must be a JSON object, got {type(raw).__name__}")
    if raw.get("type") not in _KNOWN_TYPES:
        return None
    try:
        return _packet_adapter.validate_python(raw)
    except ValidationError as e:
        raise ProtocolError(f"Invalid {raw.get('type')} frame: {e}") from e


def encode_packet(packet: BaseModel) -> str:
    return packet.model_dump_json(by_alias=True, exclude_none=True)
