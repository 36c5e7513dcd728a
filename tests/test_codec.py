"""Tests for serialization codecs."""

import pytest
import json

from assocdb.codec import CompactCodec, JsonCodec, get_codec
from assocdb.models import Activity, Member, Season
from assocdb.storage.exceptions import ConfigurationError, CorruptDataError


@pytest.fixture(params=[JsonCodec, CompactCodec], ids=["json", "compact"])
def codec(request):
    """Provide each codec implementation."""
    return request.param()


class TestRoundTrip:
    """decode(encode(value)) == value."""

    def test_entity_collections(self, codec):
        """Stored entity records survive, including absent optional fields."""
        members = [
            Member(id='m1', name='Dupont', first_name='Marie', season='2025-2026',
                   activity_ids=['a1', 'a2']).to_record(),
            Member(id='m2', name='Martin').to_record(),  # no season, no contact fields
        ]
        activities = [Activity(id='a1', name='Yoga', price=120.5, member_ids=['m1']).to_record()]
        seasons = [Season(id='s1', name='2025-2026', start_date='2025-09-01',
                          end_date='2026-08-31', active=True).to_record()]

        for collection in (members, activities, seasons):
            assert codec.decode(codec.encode(collection)) == collection

    def test_unicode_and_nested_values(self, codec):
        value = {'name': 'Éloïse Ç', 'tags': ['été', None, True, 3.5], 'nested': {'id': 'x'}}
        assert codec.decode(codec.encode(value)) == value

    def test_keys_colliding_with_short_forms(self, codec):
        """User keys that look like shortened keys are kept verbatim."""
        value = {'~i': 1, '~~x': 2, 'i': 3, 'id': 4, '~unknown': 5}
        assert codec.decode(codec.encode(value)) == value

    def test_empty_values(self, codec):
        for value in ([], {}, [{}]):
            assert codec.decode(codec.encode(value)) == value


class TestCorruptInput:
    """Malformed input raises CorruptDataError."""

    def test_invalid_json(self, codec):
        with pytest.raises(CorruptDataError):
            codec.decode('{not json')

    def test_truncated_compact_payload(self):
        codec = CompactCodec()
        raw = codec.encode([{'id': 'm1'}])
        with pytest.raises(CorruptDataError):
            codec.decode(raw[:-6])

    def test_unknown_short_key(self):
        """A marker key with no known expansion is corrupt data."""
        import base64
        import zlib
        packed = zlib.compress(json.dumps({'~zz': 1}).encode('utf-8'))
        raw = CompactCodec.PREFIX + base64.b64encode(packed).decode('ascii')
        with pytest.raises(CorruptDataError):
            CompactCodec().decode(raw)


class TestCompactCodec:
    """Tests specific to the compact codec."""

    def test_output_is_prefixed_and_shorter(self):
        records = [Member(id=f'm{i}', name='Dupont', first_name='Marie',
                          season='2025-2026').to_record() for i in range(50)]
        compact = CompactCodec().encode(records)
        plain = JsonCodec().encode(records)
        assert compact.startswith(CompactCodec.PREFIX)
        assert len(compact) < len(plain)

    def test_reads_plain_json(self):
        """Data written by JsonCodec stays readable."""
        raw = JsonCodec().encode([{'id': 'm1'}])
        assert CompactCodec().decode(raw) == [{'id': 'm1'}]

    def test_rejects_non_string_keys(self):
        with pytest.raises(TypeError):
            CompactCodec().encode({1: 'one'})


class TestGetCodec:
    """Tests for codec lookup."""

    def test_known_names(self):
        assert isinstance(get_codec('json'), JsonCodec)
        assert isinstance(get_codec('COMPACT'), CompactCodec)

    def test_unknown_name_raises(self):
        with pytest.raises(ConfigurationError):
            get_codec('msgpack')
