"""
Participant registration
"""

import logging

from ..coordination.base import CoordinationService
from ..core.codec import encode_payload
from ..core.models import ParticipantPayload
from ..core.paths import PARTICIPANT_PREFIX, normalize_path
from ..errors import CoordinationError, RegistrationError

logger = logging.getLogger(__name__)


async def register_participant(
    service: CoordinationService,
    barrier_path: str,
    payload: ParticipantPayload,
) -> str:
    """
    Ensure the barrier path exists and create this participant's node.

    Returns the service-assigned child name. Failures are not retried.
    """
    barrier_path = normalize_path(barrier_path)
    try:
        await service.ensure_path(barrier_path)
        name = await service.create_ordered_ephemeral_child(
            barrier_path, PARTICIPANT_PREFIX, encode_payload(payload)
        )
    except CoordinationError as e:
        logger.error(f"Registration under {barrier_path} failed: {e}")
        raise RegistrationError(barrier_path, str(e)) from e

    logger.debug(f"Registered {name} under {barrier_path} with {payload}")
    return name
