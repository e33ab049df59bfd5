"""
Core models, codec and path helpers
"""

from .models import ParticipantPayload, MembershipSnapshot, AggregationReport, BarrierResult
from .codec import encode_payload, decode_payload
from .paths import PARTICIPANT_PREFIX, normalize_path, join_path, sequential_name

__all__ = [
    'ParticipantPayload',
    'MembershipSnapshot',
    'AggregationReport',
    'BarrierResult',
    'encode_payload',
    'decode_payload',
    'PARTICIPANT_PREFIX',
    'normalize_path',
    'join_path',
    'sequential_name',
]
