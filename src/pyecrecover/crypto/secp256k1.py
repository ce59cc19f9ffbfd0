"""
secp256k1 curve parameters

The Koblitz curve used by Bitcoin and Ethereum, where recoverable signatures
carry the legacy 27/28 recovery ids.
"""

from typing import Optional, Tuple

from . import ec


class Secp256k1Curve:
    """secp256k1 curve parameters"""

    NAME = "secp256k1"

    # Curve field prime (p)
    P = 0xfffffffffffffffffffffffffffffffffffffffffffffffffffffffefffffc2f

    # Scalar field prime (n) - order of the base point
    N = 0xfffffffffffffffffffffffffffffffebaaedce6af48a03bbfd25e8cd0364141

    # Curve parameters for y^2 = x^3 + 7
    A = 0
    B = 7

    # Generator point coordinates
    G_X = 0x79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798
    G_Y = 0x483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8

    H = 1

    COORD_BYTES = 32


def derive_public_key(private_key: int) -> str:
    """
    Returns the 128 hex character public key (x || y) for a secp256k1 private key.
    """
    return ec.derive_public_key(Secp256k1Curve(), private_key)


def sign(private_key: int, hash_input: bytes, k: Optional[int] = None) -> Tuple[int, int, int]:
    """
    Signs the given message digest with a secp256k1 private key.

    Returns:
        Tuple of (r, s, recovery_id)
    """
    return ec.sign(Secp256k1Curve(), private_key, hash_input, k)
