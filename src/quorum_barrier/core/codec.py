"""
Metadata codec

Participant metadata is stored in the registration node as a UTF-8 JSON
object with the keys ``repository``, ``participantValue`` and ``ip``.
"""

import logging
from typing import Union

from pydantic import ValidationError

from ..errors import PayloadCodecError
from .models import ParticipantPayload

logger = logging.getLogger(__name__)


def encode_payload(payload: ParticipantPayload) -> bytes:
    """Serialize a payload for storage in a registration node"""
    return payload.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def decode_payload(data: Union[bytes, str]) -> ParticipantPayload:
    """Deserialize a payload read from a registration node"""
    if data is None:
        raise PayloadCodecError("Empty participant metadata")
    try:
        return ParticipantPayload.model_validate_json(data)
    except (ValidationError, ValueError) as e:
        logger.debug(f"Undecodable participant metadata: {data!r}")
        raise PayloadCodecError(f"Invalid participant metadata: {e}") from e
