"""
pyecrecover

ECDSA public key recovery (SEC1 v2 section 4.1.6) for cofactor-1 curves.

Given the digest of a signed message, the signature components (r, s) and a
recovery id, the library reconstructs the signer's public key, so callers
such as transaction validators do not need the key to be sent alongside the
signature. Curve arithmetic is implemented in pure Python; secp256r1,
secp384r1 and secp256k1 are bundled.
"""

from .recovery import (
    recover_public_key,
    recover_public_key_p256,
    recover_public_key_fixed_curve,
    try_recover_public_key,
    recover_candidates,
    find_recovery_id,
    normalize_recovery_id,
    truncate_digest,
    resolve_curve,
    parse_signature_component,
    KeyRecoveryError,
    ErrorKind,
    RecoveryResult,
    VALID_RECOVERY_IDS,
)

from .crypto import (
    CurveParams,
    Point,
    P256Curve,
    P384Curve,
    Secp256k1Curve,
    CURVES,
)

from .crypto.ec import (
    derive_public_key,
    sign,
)

__version__ = "0.1.0"

__all__ = [
    # Key recovery
    "recover_public_key",
    "recover_public_key_p256",
    "recover_public_key_fixed_curve",
    "try_recover_public_key",
    "recover_candidates",
    "find_recovery_id",
    "normalize_recovery_id",
    "truncate_digest",
    "resolve_curve",
    "parse_signature_component",
    "KeyRecoveryError",
    "ErrorKind",
    "RecoveryResult",
    "VALID_RECOVERY_IDS",

    # Curves
    "CurveParams",
    "Point",
    "P256Curve",
    "P384Curve",
    "Secp256k1Curve",
    "CURVES",

    # Signing
    "derive_public_key",
    "sign",
]
