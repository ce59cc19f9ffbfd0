"""
Elliptic curve arithmetic and curve parameters for public key recovery

This module provides the group operations and the named cofactor-1 curves
that key recovery runs over: secp256r1, secp384r1 and secp256k1.
"""

from .ec import CurveParams, Point
from .secp256r1 import P256Curve
from .secp384r1 import P384Curve
from .secp256k1 import Secp256k1Curve

# Curve identifiers accepted wherever a curve may be named instead of passed
CURVES = {
    'secp256r1': P256Curve,
    'prime256v1': P256Curve,
    'P-256': P256Curve,
    'secp384r1': P384Curve,
    'P-384': P384Curve,
    'secp256k1': Secp256k1Curve,
}

__all__ = [
    'CurveParams',
    'Point',
    'P256Curve',
    'P384Curve',
    'Secp256k1Curve',
    'CURVES',
]
