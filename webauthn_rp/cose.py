"""COSE public keys: parsing, signature verification and display."""

from __future__ import annotations

import base64
import hashlib
import textwrap
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.x509.oid import ObjectIdentifier, SignatureAlgorithmOID

from .ctap_cbor import marshal, unmarshal

KEY_CANNOT_DISPLAY = "Cannot display key"

_EC_COORD_SIZE = 32
_ED25519_KEY_SIZE = 32


class COSEError(Exception):
    """An error raised while handling COSE key material."""

    def __init__(self, type: str, details: str = "", dev_info: str = "") -> None:
        super().__init__(type, details, dev_info)
        self.type = type
        self.details = details
        self.dev_info = dev_info

    def __str__(self) -> str:
        return self.details

    def _replace(self, **changes) -> COSEError:
        fields = {"type": self.type, "details": self.details, "dev_info": self.dev_info}
        fields.update(changes)
        return self.__class__(**fields)

    def with_details(self, details: str) -> COSEError:
        """Return a copy of this error with different details."""
        return self._replace(details=details)


ERR_UNSUPPORTED_KEY = COSEError("invalid_key_type", "Unsupported Public Key Type")
ERR_UNSUPPORTED_ALGORITHM = COSEError(
    "unsupported_key_algorithm", "Unsupported public key algorithm"
)
ERR_SIG_NOT_PROVIDED_OR_INVALID = COSEError(
    "signature_not_provided_or_invalid", "Signature invalid or not provided"
)


class COSEAlgorithmIdentifier(IntEnum):
    """IANA COSE algorithm identifiers."""

    ES256 = -7
    EDDSA = -8
    ES384 = -35
    ES512 = -36
    PS256 = -37
    PS384 = -38
    PS512 = -39
    ES256K = -47
    RS256 = -257
    RS384 = -258
    RS512 = -259
    RS1 = -65535


class COSEKeyType(IntEnum):
    """IANA COSE key types."""

    RESERVED = 0
    OCTET_KEY = 1
    ELLIPTIC_KEY = 2
    RSA_KEY = 3
    SYMMETRIC = 4
    HSS_LMS = 5


class COSEEllipticCurve(IntEnum):
    """IANA COSE elliptic curves."""

    RESERVED = 0
    P256 = 1
    P384 = 2
    P521 = 3
    X25519 = 4
    X448 = 5
    ED25519 = 6
    ED448 = 7
    SECP256K1 = 8


@dataclass(frozen=True)
class _AlgorithmDetails:
    name: str
    hash_name: str
    signature_oid: ObjectIdentifier


_A = COSEAlgorithmIdentifier

COSE_SIGNATURE_ALGORITHM_DETAILS: dict[COSEAlgorithmIdentifier, _AlgorithmDetails] = {
    _A.RS1: _AlgorithmDetails("SHA1-RSA", "sha1", SignatureAlgorithmOID.RSA_WITH_SHA1),
    _A.RS256: _AlgorithmDetails("SHA256-RSA", "sha256", SignatureAlgorithmOID.RSA_WITH_SHA256),
    _A.RS384: _AlgorithmDetails("SHA384-RSA", "sha384", SignatureAlgorithmOID.RSA_WITH_SHA384),
    _A.RS512: _AlgorithmDetails("SHA512-RSA", "sha512", SignatureAlgorithmOID.RSA_WITH_SHA512),
    _A.PS256: _AlgorithmDetails("SHA256-RSAPSS", "sha256", SignatureAlgorithmOID.RSASSA_PSS),
    _A.PS384: _AlgorithmDetails("SHA384-RSAPSS", "sha384", SignatureAlgorithmOID.RSASSA_PSS),
    _A.PS512: _AlgorithmDetails("SHA512-RSAPSS", "sha512", SignatureAlgorithmOID.RSASSA_PSS),
    _A.ES256: _AlgorithmDetails("ECDSA-SHA256", "sha256", SignatureAlgorithmOID.ECDSA_WITH_SHA256),
    _A.ES384: _AlgorithmDetails("ECDSA-SHA384", "sha384", SignatureAlgorithmOID.ECDSA_WITH_SHA384),
    _A.ES512: _AlgorithmDetails("ECDSA-SHA512", "sha512", SignatureAlgorithmOID.ECDSA_WITH_SHA512),
    _A.EDDSA: _AlgorithmDetails("EdDSA", "sha512", SignatureAlgorithmOID.ED25519),
}

_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

_PSS_ALGORITHMS = {_A.PS256, _A.PS384, _A.PS512}
_PKCS1_ALGORITHMS = {_A.RS1, _A.RS256, _A.RS384, _A.RS512}

_TPM_CURVES = {
    COSEEllipticCurve.P256: 0x0003,
    COSEEllipticCurve.P384: 0x0004,
    COSEEllipticCurve.P521: 0x0005,
}


def sig_alg_from_cose_alg(cose_alg: int) -> ObjectIdentifier | None:
    """Return the X.509 signature algorithm OID for a COSE algorithm, or None if unknown."""
    details = COSE_SIGNATURE_ALGORITHM_DETAILS.get(cose_alg)
    return details.signature_oid if details else None


def hasher_from_cose_alg(cose_alg: int):
    """Return a new hashlib hash for a COSE algorithm, SHA-256 when unknown."""
    details = COSE_SIGNATURE_ALGORITHM_DETAILS.get(cose_alg)
    return hashlib.new(details.hash_name if details else "sha256")


def _crypto_hash(cose_alg: int) -> hashes.HashAlgorithm:
    details = COSE_SIGNATURE_ALGORITHM_DETAILS.get(cose_alg)
    return _HASHES[details.hash_name if details else "sha256"]()


def _ec2_curve(cose_alg: int) -> ec.EllipticCurve | None:
    if cose_alg == _A.ES512:
        return ec.SECP521R1()
    if cose_alg == _A.ES384:
        return ec.SECP384R1()
    if cose_alg == _A.ES256:
        return ec.SECP256R1()
    return None


def _pem(label: str, der: bytes) -> str:
    body = "\n".join(textwrap.wrap(base64.b64encode(der).decode("ascii"), 64))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----\n"


def _spki_der(public_key: Any) -> bytes:
    return public_key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )


@dataclass
class PublicKeyData:
    """The common part of a COSE credential public key."""

    key_type: int = 0
    algorithm: int = 0

    def _cose_map(self) -> dict[Any, Any]:
        return {1: self.key_type, 3: self.algorithm}

    def to_cbor(self) -> bytes:
        """Encode this key as a CTAP2 canonical COSE_Key."""
        return marshal(self._cose_map())


@dataclass
class EC2PublicKeyData(PublicKeyData):
    """An elliptic curve (EC2) COSE public key."""

    curve: int = 0
    x_coord: bytes = b""
    y_coord: bytes = b""

    def _cose_map(self) -> dict[Any, Any]:
        result = super()._cose_map()
        if self.curve:
            result[-1] = self.curve
        if self.x_coord:
            result[-2] = bytes(self.x_coord)
        if self.y_coord:
            result[-3] = bytes(self.y_coord)
        return result

    def _public_key(self, curve: ec.EllipticCurve) -> ec.EllipticCurvePublicKey:
        return ec.EllipticCurvePublicNumbers(
            int.from_bytes(self.x_coord, "big"), int.from_bytes(self.y_coord, "big"), curve
        ).public_key()

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Verify a DER encoded ECDSA signature over data.

        Raises COSEError for an unsupported algorithm or a malformed signature.
        """
        curve = _ec2_curve(self.algorithm)
        if curve is None:
            raise ERR_UNSUPPORTED_ALGORITHM._replace()
        try:
            r, s = decode_dss_signature(bytes(sig))
        except ValueError as exc:
            raise ERR_SIG_NOT_PROVIDED_OR_INVALID._replace() from exc
        try:
            public_key = self._public_key(curve)
        except ValueError:
            return False
        try:
            public_key.verify(
                encode_dss_signature(r, s), bytes(data), ec.ECDSA(_crypto_hash(self.algorithm))
            )
        except (InvalidSignature, ValueError):
            return False
        return True

    def tpm_curve_id(self) -> int:
        """Return the TPM elliptic curve identifier for this key's curve, 0 for none."""
        return _TPM_CURVES.get(self.curve, 0)


@dataclass
class RSAPublicKeyData(PublicKeyData):
    """An RSA COSE public key."""

    modulus: bytes = b""
    exponent: bytes = b""

    def _cose_map(self) -> dict[Any, Any]:
        result = super()._cose_map()
        if self.modulus:
            result[-1] = bytes(self.modulus)
        if self.exponent:
            result[-2] = bytes(self.exponent)
        return result

    def _public_key(self) -> rsa.RSAPublicKey:
        if len(self.exponent) < 3:
            raise ValueError("RSA exponent must be at least three bytes")
        exponent = int.from_bytes(self.exponent[:3], "big")
        return rsa.RSAPublicNumbers(exponent, int.from_bytes(self.modulus, "big")).public_key()

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Verify a PKCS#1 v1.5 or PSS signature over data.

        Raises COSEError for an unsupported algorithm and InvalidSignature when
        the signature does not verify.
        """
        public_key = self._public_key()
        if self.algorithm not in COSE_SIGNATURE_ALGORITHM_DETAILS:
            raise ERR_UNSUPPORTED_ALGORITHM._replace()
        hash_algorithm = _crypto_hash(self.algorithm)
        if self.algorithm in _PSS_ALGORITHMS:
            scheme: padding.AsymmetricPadding = padding.PSS(
                mgf=padding.MGF1(hash_algorithm), salt_length=padding.PSS.AUTO
            )
        elif self.algorithm in _PKCS1_ALGORITHMS:
            scheme = padding.PKCS1v15()
        else:
            raise ERR_UNSUPPORTED_ALGORITHM._replace()
        public_key.verify(bytes(sig), bytes(data), scheme, hash_algorithm)
        return True


@dataclass
class OKPPublicKeyData(PublicKeyData):
    """An octet key pair (Ed25519) COSE public key."""

    curve: int = 0
    x_coord: bytes = b""

    def _cose_map(self) -> dict[Any, Any]:
        result = super()._cose_map()
        if self.curve:
            result[-1] = self.curve
        if self.x_coord:
            result[-2] = bytes(self.x_coord)
        return result

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Verify an Ed25519 signature over data."""
        key_bytes = bytes(self.x_coord[:_ED25519_KEY_SIZE]).ljust(_ED25519_KEY_SIZE, b"\0")
        try:
            Ed25519PublicKey.from_public_bytes(key_bytes).verify(bytes(sig), bytes(data))
        except (InvalidSignature, ValueError):
            return False
        return True


def _int_field(fields: dict[Any, Any], key: int) -> int:
    value = fields.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def _bytes_field(fields: dict[Any, Any], key: int) -> bytes:
    value = fields.get(key)
    return value if isinstance(value, bytes) else b""


def parse_public_key(key_bytes: bytes) -> EC2PublicKeyData | RSAPublicKeyData | OKPPublicKeyData:
    """Parse COSE_Key bytes into the matching key class.

    Raises COSEError when the key type is not OKP, EC2 or RSA.
    """
    try:
        fields = unmarshal(key_bytes)
    except ValueError:
        fields = {}
    if not isinstance(fields, dict):
        fields = {}

    key_type = _int_field(fields, 1)
    algorithm = _int_field(fields, 3)

    if key_type == COSEKeyType.OCTET_KEY:
        return OKPPublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            curve=_int_field(fields, -1),
            x_coord=_bytes_field(fields, -2),
        )
    if key_type == COSEKeyType.ELLIPTIC_KEY:
        return EC2PublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            curve=_int_field(fields, -1),
            x_coord=_bytes_field(fields, -2),
            y_coord=_bytes_field(fields, -3),
        )
    if key_type == COSEKeyType.RSA_KEY:
        return RSAPublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            modulus=_bytes_field(fields, -1),
            exponent=_bytes_field(fields, -2),
        )
    raise ERR_UNSUPPORTED_KEY._replace()


def parse_fido_public_key(key_bytes: bytes) -> EC2PublicKeyData:
    """Parse an uncompressed P-256 point as used by FIDO U2F (appid) credentials."""
    key_bytes = bytes(key_bytes)
    if len(key_bytes) != 1 + 2 * _EC_COORD_SIZE or key_bytes[0] != 0x04:
        raise ValueError("elliptic unmarshall returned a nil value")
    try:
        point = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), key_bytes)
    except ValueError as exc:
        raise ValueError("elliptic unmarshall returned a nil value") from exc
    numbers = point.public_numbers()
    return EC2PublicKeyData(
        algorithm=int(COSEAlgorithmIdentifier.ES256),
        x_coord=numbers.x.to_bytes(_EC_COORD_SIZE, "big"),
        y_coord=numbers.y.to_bytes(_EC_COORD_SIZE, "big"),
    )


def verify_signature(key: Any, data: bytes, sig: bytes) -> bool:
    """Verify sig over data with a parsed COSE key.

    Raises COSEError when the key is not an OKP, EC2 or RSA key.
    """
    if isinstance(key, (OKPPublicKeyData, EC2PublicKeyData, RSAPublicKeyData)):
        return key.verify(data, sig)
    raise ERR_UNSUPPORTED_KEY._replace()


def display_public_key(cpk: bytes) -> str:
    """Return the PEM encoding of a COSE public key, or a message saying it cannot be shown."""
    try:
        parsed = parse_public_key(cpk)
    except COSEError:
        return KEY_CANNOT_DISPLAY

    try:
        if isinstance(parsed, RSAPublicKeyData):
            return _pem("RSA PUBLIC KEY", _spki_der(parsed._public_key()))
        if isinstance(parsed, EC2PublicKeyData):
            curve = _ec2_curve(parsed.algorithm)
            if curve is None:
                return KEY_CANNOT_DISPLAY
            return _pem("PUBLIC KEY", _spki_der(parsed._public_key(curve)))
        if len(parsed.x_coord) != _ED25519_KEY_SIZE:
            return KEY_CANNOT_DISPLAY
        public_key = Ed25519PublicKey.from_public_bytes(bytes(parsed.x_coord))
        return _pem("PUBLIC KEY", _spki_der(public_key))
    except ValueError:
        return KEY_CANNOT_DISPLAY