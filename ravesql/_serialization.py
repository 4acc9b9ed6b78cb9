"""JSON encoding helpers backed by msgspec."""

from typing import Any, Union

import msgspec

__all__ = ("decode_json", "encode_json")


def _fallback_encode(value: Any) -> str:
    return str(value)


_encoder = msgspec.json.Encoder(enc_hook=_fallback_encode)
_decoder = msgspec.json.Decoder()


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode data to JSON.

    Values msgspec cannot encode natively are written as their ``str()`` so that
    log records never fail to serialize.

    Args:
        data: Data to encode.
        as_bytes: Return bytes instead of a decoded string.

    Returns:
        JSON representation of ``data``.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: Union[str, bytes]) -> Any:
    """Decode a JSON document."""
    return _decoder.decode(data)
