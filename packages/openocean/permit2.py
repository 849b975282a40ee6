"""
Permit2 signature transfer for gasless swaps

The relayer pulls the input token through Permit2 with a signed
PermitTransferFrom instead of an on-chain approval to the router.
"""

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from eth_abi import encode
from eth_utils import to_bytes, to_checksum_address, to_hex

if TYPE_CHECKING:
    from .clients import ChainClient

# Canonical Permit2 deployment (same address on every chain)
PERMIT2_ADDRESS = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

# OpenOcean gasless spender
GASLESS_SPENDER = "0xB1DD8E9ebbF5F150B75642D1653dF0dacd0bfF47"

# permitTransferFrom(((address,uint256),uint256,uint256),(address,uint256),address,bytes)
PERMIT_TRANSFER_FROM_SELECTOR = "0x30f28b7a"

PERMIT_DEADLINE_SECONDS = 60 * 30

PERMIT_TRANSFER_FROM_TYPES = {
    "PermitTransferFrom": [
        {"name": "permitted", "type": "TokenPermissions"},
        {"name": "spender", "type": "address"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
    "TokenPermissions": [
        {"name": "token", "type": "address"},
        {"name": "amount", "type": "uint256"},
    ],
}


@dataclass
class PermitData:
    """Encoded permit handed to the gasless relayer"""
    permit: str  # permitTransferFrom calldata
    nonce: int
    deadline: int
    spender: str
    signature: str


def get_permit_data(
    token: str,
    amount: int,
    spender: str,
    nonce: int,
    deadline: int,
    chain_id: int,
    permit2_address: str = PERMIT2_ADDRESS,
) -> Dict[str, Any]:
    """EIP-712 domain, types and values of a PermitTransferFrom"""
    return {
        "domain": {
            "name": "Permit2",
            "chainId": int(chain_id),
            "verifyingContract": to_checksum_address(permit2_address),
        },
        "types": PERMIT_TRANSFER_FROM_TYPES,
        "values": {
            "permitted": {
                "token": to_checksum_address(token),
                "amount": int(amount),
            },
            "spender": to_checksum_address(spender),
            "nonce": int(nonce),
            "deadline": int(deadline),
        },
    }


def encode_permit_transfer_from(
    token: str,
    amount: int,
    nonce: int,
    deadline: int,
    spender: str,
    owner: str,
    signature: str,
) -> str:
    """permitTransferFrom calldata (transfer details request the full permitted amount)"""
    args = encode(
        ["((address,uint256),uint256,uint256)", "(address,uint256)", "address", "bytes"],
        [
            ((to_checksum_address(token), int(amount)), int(nonce), int(deadline)),
            (to_checksum_address(spender), int(amount)),
            to_checksum_address(owner),
            to_bytes(hexstr=signature),
        ],
    )
    return PERMIT_TRANSFER_FROM_SELECTOR + args.hex()


def build_permit(
    client: "ChainClient",
    token: str,
    amount: int,
    nonce: int,
    spender: str = GASLESS_SPENDER,
    deadline: Optional[int] = None,
    permit2_address: str = PERMIT2_ADDRESS,
) -> PermitData:
    """
    Sign a Permit2 transfer for `amount` of `token` and encode it

    Args:
        client: Chain client holding the owner's key
        nonce: Next Permit2 nonce (client.permit2_next_nonce(spender))
        deadline: Unix timestamp, default now + 30 minutes
    """
    if deadline is None:
        deadline = int(time.time()) + PERMIT_DEADLINE_SECONDS

    permit_data = get_permit_data(token, amount, spender, nonce, deadline, client.chain_id, permit2_address)
    signed = client.sign_typed_data(permit_data["domain"], permit_data["types"], permit_data["values"])
    signature = to_hex(signed.signature)

    permit = encode_permit_transfer_from(token, amount, nonce, deadline, spender, client.address, signature)
    return PermitData(
        permit=permit,
        nonce=int(nonce),
        deadline=int(deadline),
        spender=spender,
        signature=signature,
    )
