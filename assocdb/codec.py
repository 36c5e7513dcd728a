"""
Serialization codecs between in-memory collections and stored strings.

Two interchangeable implementations:
- JsonCodec: plain JSON
- CompactCodec: shortened object keys + zlib, base64 wrapped

Both satisfy decode(encode(value)) == value for every JSON-representable
value. Key shortening is a storage detail only; decoded shapes never change.
"""

import base64
import binascii
import json
import zlib
from abc import ABC, abstractmethod
from typing import Any, Dict

from .storage.exceptions import CorruptDataError, ConfigurationError


class Codec(ABC):
    """Converts JSON-compatible values to and from strings."""

    name = 'abstract'

    @abstractmethod
    def encode(self, value: Any) -> str:
        """
        Serialize a value.

        Raises:
            TypeError, ValueError: If the value is not JSON-representable
        """
        pass

    @abstractmethod
    def decode(self, raw: str) -> Any:
        """
        Deserialize a stored string.

        Raises:
            CorruptDataError: If the string is not a valid encoding
        """
        pass


class JsonCodec(Codec):
    """Plain JSON, readable in the storage backend."""

    name = 'json'

    def encode(self, value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'), allow_nan=False)

    def decode(self, raw: str) -> Any:
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CorruptDataError(f"Invalid JSON: {e}") from e


# Frequent entity keys and their stored abbreviations
SHORT_KEYS: Dict[str, str] = {
    'id': 'i',
    'name': 'n',
    'firstName': 'fn',
    'email': 'e',
    'phone': 't',
    'season': 's',
    'createdAt': 'c',
    'memberIds': 'm',
    'activityIds': 'a',
    'memberId': 'mi',
    'activityId': 'ai',
    'description': 'd',
    'startDate': 'sd',
    'endDate': 'ed',
    'active': 'ac',
    'completed': 'co',
}

# Shortened keys carry this marker; real keys starting with it are escaped by doubling
_MARK = '~'


class CompactCodec(Codec):
    """
    Key-shortening JSON compressed with zlib.

    Stored form is "z1:" followed by base64 of the deflated JSON. Values
    without the prefix are read as plain JSON so data written by JsonCodec
    stays readable.
    """

    name = 'compact'
    PREFIX = 'z1:'

    def __init__(self, level: int = 6):
        self.level = level
        self._expand = {short: full for full, short in SHORT_KEYS.items()}

    def encode(self, value: Any) -> str:
        text = json.dumps(self._shorten(value), ensure_ascii=False,
                          separators=(',', ':'), allow_nan=False)
        packed = zlib.compress(text.encode('utf-8'), self.level)
        return self.PREFIX + base64.b64encode(packed).decode('ascii')

    def decode(self, raw: str) -> Any:
        if not isinstance(raw, str):
            raise CorruptDataError(f"Expected a string, got {type(raw).__name__}")

        if not raw.startswith(self.PREFIX):
            return JsonCodec().decode(raw)

        try:
            packed = base64.b64decode(raw[len(self.PREFIX):].encode('ascii'), validate=True)
            text = zlib.decompress(packed).decode('utf-8')
            return self._restore(json.loads(text))
        except (binascii.Error, zlib.error, UnicodeError, ValueError) as e:
            raise CorruptDataError(f"Invalid compact encoding: {e}") from e

    def _shorten(self, value: Any) -> Any:
        if isinstance(value, dict):
            result = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise TypeError(f"Object keys must be strings, got {type(key).__name__}")
                if key in SHORT_KEYS:
                    key = _MARK + SHORT_KEYS[key]
                elif key.startswith(_MARK):
                    key = _MARK + key
                result[key] = self._shorten(item)
            return result
        if isinstance(value, (list, tuple)):
            return [self._shorten(item) for item in value]
        return value

    def _restore(self, value: Any) -> Any:
        if isinstance(value, dict):
            result = {}
            for key, item in value.items():
                if key.startswith(_MARK + _MARK):
                    key = key[1:]
                elif key.startswith(_MARK):
                    short = key[1:]
                    if short not in self._expand:
                        raise CorruptDataError(f"Unknown shortened key: {key}")
                    key = self._expand[short]
                result[key] = self._restore(item)
            return result
        if isinstance(value, list):
            return [self._restore(item) for item in value]
        return value


_CODECS = {
    JsonCodec.name: JsonCodec,
    CompactCodec.name: CompactCodec,
}


def get_codec(name: str) -> Codec:
    """
    Create a codec by name.

    Raises:
        ConfigurationError: If the name is unknown
    """
    try:
        return _CODECS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown CODEC: {name}. Valid options: {', '.join(sorted(_CODECS))}"
        ) from None
