"""
Download signature for TeraBox SDK.

``/api/download`` requires a ``sign`` parameter derived from the ``sign1``
and ``sign3`` strings returned by ``/api/home/info``. The web frontend
computes it with a function shipped as ``sign2``; that function is an RC4
keystream keyed by ``sign3`` and applied to ``sign1``, followed by base64.
The transform is implemented here as a fixed contract. If the upstream
formula changes the library has to be updated.
"""

import base64
from typing import Union


def _to_bytes(value: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(value, str):
        # one byte per code unit, the frontend masks char codes with 0xff
        return bytes(ord(ch) & 0xFF for ch in value)
    return bytes(value)


def transform(key: Union[str, bytes], data: Union[str, bytes]) -> bytes:
    """
    Apply the RC4-style keystream of ``key`` to ``data``.

    Args:
        key: Keying material (``sign3``), repeated cyclically over 256 bytes
        data: Input to encrypt (``sign1``)

    Returns:
        Transformed bytes, same length as ``data``
    """
    key = _to_bytes(key)
    data = _to_bytes(data)
    if not key:
        raise ValueError("key must not be empty")

    state = list(range(256))
    j = 0
    for i in range(256):
        j = (j + state[i] + key[i % len(key)]) & 0xFF
        state[i], state[j] = state[j], state[i]

    out = bytearray(len(data))
    i = j = 0
    for n, byte in enumerate(data):
        i = (i + 1) & 0xFF
        j = (j + state[i]) & 0xFF
        state[i], state[j] = state[j], state[i]
        out[n] = byte ^ state[(state[i] + state[j]) & 0xFF]
    return bytes(out)


def encode_signature(data: Union[bytes, bytearray, list]) -> str:
    """
    Encode signature bytes with the standard base64 alphabet.

    Every three input bytes become four characters; a trailing group of one
    or two bytes is padded with ``==`` or ``=``.

    Args:
        data: Bytes (or a list of byte values) to encode

    Returns:
        Base64 text
    """
    return base64.b64encode(bytes(data)).decode("ascii")


def sign_download(sign1: str, sign3: str) -> str:
    """
    Compute the ``sign`` parameter for ``/api/download``.

    Args:
        sign1: ``sign1`` from ``/api/home/info``
        sign3: ``sign3`` from ``/api/home/info``

    Returns:
        Signature string
    """
    return encode_signature(transform(sign3, sign1))
