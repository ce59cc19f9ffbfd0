"""
Public key recovery from ECDSA signatures

Given a message digest, the signature components (r, s) and a recovery id,
recovers the public key that produced the signature following SEC1 v2
section 4.1.6 (http://www.secg.org/sec1-v2.pdf).

Only curves with cofactor 1 are supported. For those the candidate x
coordinate of R is r itself, so the SEC1 loop over j collapses to a single
iteration. The loop over the two candidate points (k = 1, 2) is driven by the
recovery id chosen by the caller.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type, Union

from .crypto import CURVES
from .crypto.ec import CurveParams, Point, UNCOMPRESSED_PREFIX, _mod_inverse
from .crypto.secp256r1 import P256Curve

logger = logging.getLogger(__name__)

# Ethereum style signatures use 27 and 28 for recovery ids 0 and 1
LEGACY_RECOVERY_ID_OFFSET = 27
VALID_RECOVERY_IDS = (0, 1, 27, 28)

_HEX_RE = re.compile(r'[0-9a-fA-F]+')

CurveLike = Union[CurveParams, Type[CurveParams], str]


class KeyRecoveryError(Exception):
    """An error when recovering a public key from a signature"""

    class ErrorKind(Enum):
        """Types of key recovery errors"""
        INVALID_RECOVERY_ID = "invalid_recovery_id"
        CURVE_SETUP_FAILURE = "curve_setup_failure"
        SIGNATURE_PARSE_FAILURE = "signature_parse_failure"
        POINT_DECOMPRESSION_FAILURE = "point_decompression_failure"
        INVALID_SIGNATURE_POINT = "invalid_signature_point"
        MODULAR_INVERSE_FAILURE = "modular_inverse_failure"
        ENCODING_FAILURE = "encoding_failure"

    def __init__(self, kind: ErrorKind, message: str = ""):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}" if message else kind.value)


ErrorKind = KeyRecoveryError.ErrorKind


@dataclass(frozen=True)
class RecoveryResult:
    """
    Outcome of a single recovery attempt

    Exactly one of public_key and error is set.
    """
    public_key: Optional[str] = None
    error: Optional[KeyRecoveryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None


def _fail(kind: ErrorKind, message: str) -> KeyRecoveryError:
    logger.debug("Key recovery failed (%s): %s", kind.value, message)
    return KeyRecoveryError(kind, message)


def normalize_recovery_id(recovery_id: int) -> int:
    """
    Map a recovery id to 0 or 1.

    27 and 28 are accepted as aliases for 0 and 1. Any other value raises
    INVALID_RECOVERY_ID.
    """
    # bool is an int subclass but never a meaningful selector
    if isinstance(recovery_id, bool) or not isinstance(recovery_id, int) \
            or recovery_id not in VALID_RECOVERY_IDS:
        raise _fail(ErrorKind.INVALID_RECOVERY_ID,
                    f"signature_v must be either 0, 1, 27 or 28, got {recovery_id!r}")

    if recovery_id >= LEGACY_RECOVERY_ID_OFFSET:
        return recovery_id - LEGACY_RECOVERY_ID_OFFSET
    return recovery_id


def truncate_digest(digest: bytes, byte_length: int) -> bytes:
    """Keep only the leftmost byte_length bytes of the digest"""
    if len(digest) > byte_length:
        return digest[:byte_length]
    return digest


def resolve_curve(curve: CurveLike) -> CurveParams:
    """
    Resolve a curve given as parameters, a parameter class or an identifier
    from CURVES, and check it is usable for key recovery.
    """
    if isinstance(curve, str):
        curve_cls = CURVES.get(curve)
        if curve_cls is None:
            raise _fail(ErrorKind.CURVE_SETUP_FAILURE,
                        f"Could not get parameters for requested curve {curve!r}")
        curve = curve_cls

    if isinstance(curve, type):
        curve = curve()

    for attr in ('P', 'N', 'A', 'B', 'G_X', 'G_Y', 'COORD_BYTES'):
        if not isinstance(getattr(curve, attr, None), int):
            raise _fail(ErrorKind.CURVE_SETUP_FAILURE,
                        f"Curve parameter {attr} is missing or not an integer")

    cofactor = getattr(curve, 'H', 1)
    if cofactor != 1:
        raise _fail(ErrorKind.CURVE_SETUP_FAILURE,
                    f"Curves with cofactor {cofactor} are not supported, cofactor must be 1")

    if curve.COORD_BYTES <= 0:
        raise _fail(ErrorKind.CURVE_SETUP_FAILURE, "Curve byte length must be positive")

    return curve


def parse_signature_component(value: str, name: str) -> int:
    """
    Parse a signature component given as hexadecimal text.

    Accepts upper and lower case digits only; signs, prefixes and whitespace
    are rejected.
    """
    if not isinstance(value, str) or _HEX_RE.fullmatch(value) is None:
        raise _fail(ErrorKind.SIGNATURE_PARSE_FAILURE,
                    f"Could not convert {name} of signature to an integer")
    return int(value, 16)


def recover_public_key(digest: bytes, signature_r: str, signature_s: str,
                       recovery_id: int, curve: CurveLike) -> str:
    """
    Recover the public key that produced a signature.

    Args:
        digest: Hash of the signed message, truncated to the curve byte length
        signature_r: r component of the signature, as hex
        signature_s: s component of the signature, as hex
        recovery_id: One of 0, 1, 27 or 28
        curve: Curve parameters, a parameter class, or a name from CURVES

    Returns:
        The uncompressed public key x || y as lowercase hex, without the 04
        format prefix (4 * COORD_BYTES characters)

    Raises:
        KeyRecoveryError: if any step of the recovery fails
    """
    v = normalize_recovery_id(recovery_id)
    curve = resolve_curve(curve)
    n = curve.N

    hash_bytes = truncate_digest(bytes(digest), curve.COORD_BYTES)

    r = parse_signature_component(signature_r, "r")

    # 1.1. x = r + j * n. With cofactor 1, j is always 0
    x = r

    # 1.2 - 1.3. Decompress R from x and the parity selected by v
    R = Point.from_x(x, v, curve)
    if R is None:
        raise _fail(ErrorKind.POINT_DECOMPRESSION_FAILURE,
                    "Could not set compressed coordinates for point R")

    # 1.4. nR must be the point at infinity
    nR = R.scalar_mult(n)
    if not nR.is_infinity():
        raise _fail(ErrorKind.INVALID_SIGNATURE_POINT,
                    "Point nR should be at infinity, but is not")

    # 1.5. e from the digest
    e = int.from_bytes(hash_bytes, byteorder='big')

    # 1.6.1. Q = r^-1 * (s * R - e * G)
    inverse_r = _mod_inverse(r, n)
    if inverse_r is None:
        raise _fail(ErrorKind.MODULAR_INVERSE_FAILURE,
                    "Could not calculate the inverse of r")

    s = parse_signature_component(signature_s, "s")

    sR = R.scalar_mult(s)
    negative_eG = Point.generator(curve).scalar_mult(e).negate()
    sR_minus_eG = sR.add(negative_eG)
    Q = sR_minus_eG.scalar_mult(inverse_r)

    if Q.is_infinity():
        raise _fail(ErrorKind.INVALID_SIGNATURE_POINT,
                    "Recovered public key Q is the point at infinity")

    encoded = Q.to_uncompressed()
    if encoded is None or encoded[0] != UNCOMPRESSED_PREFIX:
        raise _fail(ErrorKind.ENCODING_FAILURE,
                    "Could not convert Q to its uncompressed encoding")

    # Drop the 04 format identifier
    public_key = encoded[1:].hex()
    if len(public_key) != 4 * curve.COORD_BYTES:
        raise _fail(ErrorKind.ENCODING_FAILURE,
                    f"Encoded public key has {len(public_key)} hex characters, "
                    f"expected {4 * curve.COORD_BYTES}")

    logger.debug("Recovered public key on %s with recovery id %d",
                 getattr(curve, 'NAME', type(curve).__name__), v)
    return public_key


def recover_public_key_p256(digest: bytes, signature_r: str, signature_s: str,
                            recovery_id: int) -> str:
    """Recover a secp256r1 (P-256) public key, see recover_public_key"""
    return recover_public_key(digest, signature_r, signature_s, recovery_id, P256Curve)


recover_public_key_fixed_curve = recover_public_key_p256


def try_recover_public_key(digest: bytes, signature_r: str, signature_s: str,
                           recovery_id: int, curve: CurveLike = P256Curve) -> RecoveryResult:
    """Like recover_public_key, but reports failure in the result instead of raising"""
    try:
        public_key = recover_public_key(digest, signature_r, signature_s, recovery_id, curve)
    except KeyRecoveryError as e:
        return RecoveryResult(error=e)
    return RecoveryResult(public_key=public_key)


def recover_candidates(digest: bytes, signature_r: str, signature_s: str,
                       curve: CurveLike = P256Curve) -> Dict[int, str]:
    """
    Try both recovery ids and return the keys that could be recovered,
    keyed by recovery id.

    Errors that do not depend on the recovery id (unknown curve, unparseable
    signature) are raised rather than skipped.
    """
    candidates = {}
    for recovery_id in (0, 1):
        result = try_recover_public_key(digest, signature_r, signature_s, recovery_id, curve)
        if result.ok:
            candidates[recovery_id] = result.public_key
        elif result.kind in (ErrorKind.CURVE_SETUP_FAILURE, ErrorKind.SIGNATURE_PARSE_FAILURE):
            raise result.error
    return candidates


def find_recovery_id(digest: bytes, signature_r: str, signature_s: str,
                     public_key: str, curve: CurveLike = P256Curve) -> int:
    """
    Find the recovery id (0 or 1) under which the signature recovers to
    the given public key (x || y hex, with or without a 04 prefix).
    """
    curve = resolve_curve(curve)
    expected = public_key.lower()
    if len(expected) == 4 * curve.COORD_BYTES + 2 and expected.startswith('04'):
        expected = expected[2:]

    for recovery_id, candidate in recover_candidates(digest, signature_r, signature_s, curve).items():
        if candidate == expected:
            return recovery_id

    raise _fail(ErrorKind.INVALID_SIGNATURE_POINT,
                "Signature does not recover to the given public key under any recovery id")
