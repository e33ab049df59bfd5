"""
Tests for the participant metadata codec
"""

import json

import pytest

from quorum_barrier.core.codec import decode_payload, encode_payload
from quorum_barrier.core.models import ParticipantPayload
from quorum_barrier.errors import PayloadCodecError


class TestPayloadCodec:
    """Encoding and decoding of registration node data"""

    def test_round_trip(self, sample_payload):
        """Decoding an encoded payload yields an equal payload"""
        decoded = decode_payload(encode_payload(sample_payload))

        assert decoded == sample_payload
        assert decoded.repository == "octo/repo"
        assert decoded.participant_value == 42.0
        assert decoded.ip == "203.0.113.7"

    def test_wire_keys(self, sample_payload):
        """Encoded data uses the repository/participantValue/ip keys"""
        data = json.loads(encode_payload(sample_payload).decode("utf-8"))

        assert data == {"repository": "octo/repo", "participantValue": 42.0, "ip": "203.0.113.7"}

    def test_absent_fields_are_omitted(self):
        """Missing repository and value are left out of the encoding"""
        payload = ParticipantPayload(ip="198.51.100.1")
        data = json.loads(encode_payload(payload))

        assert data == {"ip": "198.51.100.1"}
        assert decode_payload(encode_payload(payload)) == payload

    def test_decode_from_str(self):
        payload = decode_payload('{"participantValue": 7, "ip": "10.0.0.1"}')

        assert payload.participant_value == 7
        assert payload.repository is None

    def test_decode_ignores_unknown_keys(self):
        payload = decode_payload(b'{"participantValue": 1, "extra": true}')

        assert payload.participant_value == 1

    @pytest.mark.parametrize("data", [b"not json", b"[1, 2]", b'{"participantValue": "many"}', None])
    def test_invalid_data_raises(self, data):
        with pytest.raises(PayloadCodecError):
            decode_payload(data)

    def test_payload_is_immutable(self, sample_payload):
        with pytest.raises(Exception):
            sample_payload.ip = "192.0.2.1"
