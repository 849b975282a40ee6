"""
ABI helpers shared by the chain clients, order builder and permit encoder
"""
from typing import Any, List

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_bytes, to_hex


def encode_call(signature: str, types: List[str], args: List[Any]) -> str:
    """ABI-encode a contract call: selector + arguments, as 0x hex"""
    return to_hex(function_signature_to_4byte_selector(signature) + encode(types, args))


def cut_last_arg(calldata: str) -> str:
    """Drop the last 32-byte argument of a calldata hex string"""
    raw = to_bytes(hexstr=calldata)
    return to_hex(raw[:-32])


def hex_to_bytes(value: Any) -> bytes:
    """'0x…' / bytes / None -> bytes"""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value) if value not in ("", "0x") else b""
