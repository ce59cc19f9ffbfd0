"""
Elliptic curve arithmetic over short Weierstrass curves with cofactor 1

This module provides the group operations public key recovery is built from:
point decompression, addition, negation, scalar multiplication and canonical
uncompressed encoding. It also carries plain ECDSA signing so recoverable
signatures can be produced with the same arithmetic.
"""

import secrets
from typing import Protocol, Optional, Tuple


class CurveParams(Protocol):
    """Protocol defining the interface for elliptic curve parameters"""

    # Human readable curve identifier
    NAME: str

    # Curve field prime (p)
    P: int

    # Scalar field prime (n)
    N: int

    # Curve parameters for y^2 = x^3 + ax + b
    A: int
    B: int

    # Generator point coordinates
    G_X: int
    G_Y: int

    # Cofactor (#E / n), must be 1 for key recovery
    H: int

    # Coordinate byte length
    COORD_BYTES: int


UNCOMPRESSED_PREFIX = 0x04


def _mod_inverse(a: int, m: int) -> Optional[int]:
    """
    Compute modular inverse of a mod m using extended Euclidean algorithm.
    Returns None if inverse doesn't exist.
    """
    if a < 0:
        return None

    # Extended Euclidean Algorithm
    def extended_gcd(a: int, b: int) -> Tuple[int, int, int]:
        if a == 0:
            return b, 0, 1
        gcd, x1, y1 = extended_gcd(b % a, a)
        x = y1 - (b // a) * x1
        y = x1
        return gcd, x, y

    gcd, x, _ = extended_gcd(a % m, m)
    if gcd != 1:
        return None
    return x % m


def _mod_sqrt(a: int, p: int) -> Optional[int]:
    """
    Compute a square root of a mod the odd prime p, or None if a is a
    non-residue. Uses the (p + 1) / 4 shortcut when p = 3 mod 4 and
    Tonelli-Shanks otherwise.
    """
    a %= p
    if a == 0:
        return 0
    # Euler's criterion
    if pow(a, (p - 1) // 2, p) != 1:
        return None
    if p % 4 == 3:
        return pow(a, (p + 1) // 4, p)

    q, s = p - 1, 0
    while q % 2 == 0:
        q //= 2
        s += 1

    z = 2
    while pow(z, (p - 1) // 2, p) != p - 1:
        z += 1

    m, c, t, r = s, pow(z, q, p), pow(a, q, p), pow(a, (q + 1) // 2, p)
    while t != 1:
        i, t2 = 0, t
        while t2 != 1:
            t2 = (t2 * t2) % p
            i += 1
        b = pow(c, 1 << (m - i - 1), p)
        m, c = i, (b * b) % p
        t, r = (t * c) % p, (r * b) % p
    return r


class Point:
    """
    Elliptic curve point in Jacobian coordinates

    Points are never modified after construction; every operation returns a
    new Point. The point at infinity is any point with z == 0.
    """

    __slots__ = ('x', 'y', 'z', 'curve')

    def __init__(self, x: int, y: int, z: int, curve: CurveParams):
        self.x = x
        self.y = y
        self.z = z
        self.curve = curve

    @classmethod
    def infinity(cls, curve: CurveParams) -> 'Point':
        """Return the point at infinity (group identity)"""
        return cls(0, 1, 0, curve)

    @classmethod
    def from_affine(cls, x: int, y: int, curve: CurveParams) -> Optional['Point']:
        """Create point from affine coordinates, validating it's on the curve"""
        if not (0 <= x < curve.P and 0 <= y < curve.P):
            return None

        left = (y * y) % curve.P
        right = (x * x * x + curve.A * x + curve.B) % curve.P

        if left != right:
            return None

        return cls(x, y, 1, curve)

    @classmethod
    def from_x(cls, x: int, y_parity: int, curve: CurveParams) -> Optional['Point']:
        """
        Decompress a point from its x-coordinate and the parity of y
        (SEC1 section 2.3.4). Returns None if x is not the x-coordinate of a
        curve point.
        """
        if not 0 <= x < curve.P:
            return None

        p = curve.P
        rhs = (x * x * x + curve.A * x + curve.B) % p
        y = _mod_sqrt(rhs, p)
        if y is None:
            return None

        if y & 1 != y_parity & 1:
            if y == 0:
                return None
            y = p - y

        return cls(x, y, 1, curve)

    @classmethod
    def generator(cls, curve: CurveParams) -> 'Point':
        """Return the generator point for the curve"""
        return cls(curve.G_X, curve.G_Y, 1, curve)

    def is_infinity(self) -> bool:
        """Check if this is the point at infinity"""
        return self.z == 0

    def double(self) -> 'Point':
        """Point doubling in Jacobian coordinates"""
        if self.is_infinity() or self.y == 0:
            return Point.infinity(self.curve)

        # https://hyperelliptic.org/EFD/g1p/auto-shortw-jacobian.html#doubling-dbl-2007-bl
        p = self.curve.P

        xx = (self.x * self.x) % p
        yy = (self.y * self.y) % p
        yyyy = (yy * yy) % p
        zz = (self.z * self.z) % p
        s = (2 * ((self.x + yy) * (self.x + yy) - xx - yyyy)) % p
        m = (3 * xx + self.curve.A * zz * zz) % p
        t = (m * m - 2 * s) % p

        x3 = t
        y3 = (m * (s - t) - 8 * yyyy) % p
        z3 = ((self.y + self.z) * (self.y + self.z) - yy - zz) % p

        return Point(x3, y3, z3, self.curve)

    def add(self, other: 'Point') -> 'Point':
        """Point addition in Jacobian coordinates"""
        if self.is_infinity():
            return other
        if other.is_infinity():
            return self

        p = self.curve.P

        # https://hyperelliptic.org/EFD/g1p/auto-shortw-jacobian-3.html#addition-add-2007-bl
        z1z1 = (self.z * self.z) % p
        z2z2 = (other.z * other.z) % p
        u1 = (self.x * z2z2) % p
        u2 = (other.x * z1z1) % p
        s1 = (self.y * other.z * z2z2) % p
        s2 = (other.y * self.z * z1z1) % p

        if u1 == u2:
            if s1 != s2:
                return Point.infinity(self.curve)  # P + (-P)
            return self.double()

        h = (u2 - u1) % p
        i = (2 * h) % p
        i = (i * i) % p
        j = (h * i) % p
        r = (2 * (s2 - s1)) % p
        v = (u1 * i) % p
        x3 = (r * r - j - 2 * v) % p
        y3 = (r * (v - x3) - 2 * s1 * j) % p
        z3 = ((self.z + other.z) * (self.z + other.z) - z1z1 - z2z2) % p
        z3 = (z3 * h) % p

        return Point(x3, y3, z3, self.curve)

    def negate(self) -> 'Point':
        """Return -P"""
        if self.is_infinity():
            return self
        return Point(self.x, (-self.y) % self.curve.P, self.z, self.curve)

    def scalar_mult(self, k: int) -> 'Point':
        """
        Scalar multiplication using binary method

        k is used as given, not reduced mod n, so multiplying by the group
        order itself is meaningful. Negative k multiplies -P by |k|.
        """
        if k == 0:
            return Point.infinity(self.curve)
        if k < 0:
            return self.negate().scalar_mult(-k)
        if k == 1:
            return self

        result = Point.infinity(self.curve)
        addend = self

        while k > 0:
            if k & 1:
                result = result.add(addend)
            addend = addend.double()
            k >>= 1

        return result

    def to_affine(self) -> Optional[Tuple[int, int]]:
        """Convert to affine coordinates"""
        if self.is_infinity():
            return None

        z_inv = _mod_inverse(self.z, self.curve.P)
        if z_inv is None:
            return None

        z_inv_squared = (z_inv * z_inv) % self.curve.P
        z_inv_cubed = (z_inv_squared * z_inv) % self.curve.P

        x = (self.x * z_inv_squared) % self.curve.P
        y = (self.y * z_inv_cubed) % self.curve.P

        return (x, y)

    def to_uncompressed(self) -> Optional[bytes]:
        """
        SEC1 uncompressed encoding: 0x04 || x || y, each coordinate
        COORD_BYTES long. The point at infinity has no such encoding.
        """
        affine = self.to_affine()
        if affine is None:
            return None

        x, y = affine
        size = self.curve.COORD_BYTES
        return bytes([UNCOMPRESSED_PREFIX]) + x.to_bytes(size, 'big') + y.to_bytes(size, 'big')

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        if self.curve.P != other.curve.P:
            return False
        if self.is_infinity() or other.is_infinity():
            return self.is_infinity() and other.is_infinity()
        return self.to_affine() == other.to_affine()

    def __hash__(self) -> int:
        return hash((self.curve.P, self.to_affine()))

    def __repr__(self) -> str:
        affine = self.to_affine()
        if affine is None:
            return f"Point(infinity, {self.curve.NAME})"
        return f"Point({affine[0]:#x}, {affine[1]:#x}, {self.curve.NAME})"


def derive_public_key(curve: CurveParams, private_key: int) -> str:
    """
    Compute the public key d * G for the given private key.

    Returns the uncompressed point as hex without the 04 prefix (x || y), the
    same form that key recovery produces.
    """
    if not 1 <= private_key < curve.N:
        raise ValueError("Private key must be in [1, n - 1]")

    encoded = Point.generator(curve).scalar_mult(private_key).to_uncompressed()
    if encoded is None:
        raise ValueError("Public key is the point at infinity")
    return encoded[1:].hex()


def sign(curve: CurveParams, private_key: int, hash_input: bytes,
         k: Optional[int] = None) -> Tuple[int, int, int]:
    """
    Produces an ECDSA signature over the given message digest.

    Args:
        curve: Curve parameters
        private_key: Signing key d, in [1, n - 1]
        hash_input: Hash of the message to sign
        k: Optional nonce. A fresh random nonce is drawn when omitted.

    Returns:
        Tuple of (r, s, recovery_id) where recovery_id is the parity of the
        y-coordinate of k * G

    Raises:
        ValueError: if the private key or the given nonce is unusable
    """
    if not 1 <= private_key < curve.N:
        raise ValueError("Private key must be in [1, n - 1]")

    # Parse hash (truncate if necessary)
    coord_bytes = curve.COORD_BYTES
    if len(hash_input) > coord_bytes:
        hash_bytes = hash_input[:coord_bytes]
    else:
        hash_bytes = hash_input
    z = int.from_bytes(hash_bytes, byteorder='big')

    G = Point.generator(curve)
    while True:
        nonce = k if k is not None else secrets.randbelow(curve.N - 1) + 1
        if not 1 <= nonce < curve.N:
            raise ValueError("Nonce must be in [1, n - 1]")

        kG = G.scalar_mult(nonce).to_affine()
        if kG is not None:
            x, y = kG
            r = x % curve.N
            # x >= n would need the j > 0 branch of SEC1 recovery
            if r != 0 and x < curve.N:
                s = (_mod_inverse(nonce, curve.N) * (z + r * private_key)) % curve.N
                if s != 0:
                    return r, s, y & 1

        if k is not None:
            raise ValueError("Nonce produces a degenerate signature")
