"""Credential creation and assertion options sent to the client."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

EXTENSION_APP_ID = "appid"
EXTENSION_APP_ID_EXCLUDE = "appidExclude"


def encode_url_base64(data: bytes | bytearray | str) -> str:
    """Encode data as unpadded URL-safe base64."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(bytes(data)).rstrip(b"=").decode("ascii")


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class CredentialType(str, Enum):
    """The valid public key credential types."""

    PUBLIC_KEY = "public-key"


class ConveyancePreference(str, Enum):
    """The Relying Party's preference regarding attestation conveyance."""

    NONE = "none"
    INDIRECT = "indirect"
    DIRECT = "direct"
    ENTERPRISE = "enterprise"


class AttestationFormat(str, Enum):
    """Registered attestation statement formats."""

    PACKED = "packed"
    TPM = "tpm"
    ANDROID_KEY = "android-key"
    ANDROID_SAFETYNET = "android-safetynet"
    FIDO_U2F = "fido-u2f"
    APPLE = "apple"
    NONE = "none"


class PublicKeyCredentialHints(str, Enum):
    """Hints about which kind of authenticator the user is expected to use."""

    SECURITY_KEY = "security-key"
    CLIENT_DEVICE = "client-device"
    HYBRID = "hybrid"


class ServerResponseStatus(str, Enum):
    """The status of a server response."""

    OK = "ok"
    FAILED = "failed"


@dataclass
class CredentialEntity:
    """A user account or Relying Party with which a credential is associated."""

    name: str = ""


@dataclass
class RelyingPartyEntity(CredentialEntity):
    """Relying Party attributes supplied when creating a credential."""

    id: str = ""


@dataclass
class UserEntity(CredentialEntity):
    """User account attributes supplied when creating a credential.

    A bytes id is encoded as unpadded URL-safe base64; any other id is used as is.
    """

    display_name: str = ""
    id: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of this user entity."""
        user_id = self.id
        if isinstance(user_id, (bytes, bytearray)):
            user_id = encode_url_base64(user_id)
        return {"name": self.name, "displayName": self.display_name, "id": user_id}

    def to_json(self) -> str:
        """Return this user entity as compact JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


def _relying_party_dict(entity: RelyingPartyEntity) -> dict[str, Any]:
    return {"name": entity.name, "id": entity.id}


@dataclass
class CredentialParameter:
    """A credential type and algorithm the Relying Party wants created."""

    type: CredentialType | str = CredentialType.PUBLIC_KEY
    algorithm: int = 0


def _parameter_dict(parameter: CredentialParameter) -> dict[str, Any]:
    return {"type": _text(parameter.type), "alg": int(parameter.algorithm)}


@dataclass
class CredentialDescriptor:
    """A reference to a public key credential used by create() or get()."""

    type: CredentialType | str = CredentialType.PUBLIC_KEY
    credential_id: bytes = b""
    transport: list[str] = field(default_factory=list)
    attestation_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation; the attestation type is internal and left out."""
        result: dict[str, Any] = {
            "type": _text(self.type),
            "id": encode_url_base64(self.credential_id),
        }
        if self.transport:
            result["transports"] = [_text(t) for t in self.transport]
        return result


@dataclass
class AuthenticatorSelection:
    """The Relying Party's requirements on authenticator attributes."""

    authenticator_attachment: str = ""
    require_resident_key: bool | None = None
    resident_key: str = ""
    user_verification: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation, leaving out unset members."""
        result: dict[str, Any] = {}
        if self.authenticator_attachment:
            result["authenticatorAttachment"] = _text(self.authenticator_attachment)
        if self.require_resident_key is not None:
            result["requireResidentKey"] = self.require_resident_key
        if self.resident_key:
            result["residentKey"] = _text(self.resident_key)
        if self.user_verification:
            result["userVerification"] = _text(self.user_verification)
        return result


@dataclass
class PublicKeyCredentialCreationOptions:
    """The parameters passed to create() to make a new credential."""

    relying_party: RelyingPartyEntity = field(default_factory=RelyingPartyEntity)
    user: UserEntity = field(default_factory=UserEntity)
    challenge: bytes = b""
    parameters: list[CredentialParameter] = field(default_factory=list)
    timeout: int = 0
    credential_exclude_list: list[CredentialDescriptor] = field(default_factory=list)
    authenticator_selection: AuthenticatorSelection = field(
        default_factory=AuthenticatorSelection
    )
    hints: list[PublicKeyCredentialHints | str] = field(default_factory=list)
    attestation: ConveyancePreference | str = ""
    attestation_formats: list[AttestationFormat | str] = field(default_factory=list)
    extensions: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation, leaving out empty optional members."""
        result: dict[str, Any] = {
            "rp": _relying_party_dict(self.relying_party),
            "user": self.user.to_dict(),
            "challenge": encode_url_base64(self.challenge),
        }
        if self.parameters:
            result["pubKeyCredParams"] = [_parameter_dict(p) for p in self.parameters]
        if self.timeout:
            result["timeout"] = self.timeout
        if self.credential_exclude_list:
            result["excludeCredentials"] = [c.to_dict() for c in self.credential_exclude_list]
        result["authenticatorSelection"] = self.authenticator_selection.to_dict()
        if self.hints:
            result["hints"] = [_text(h) for h in self.hints]
        if self.attestation:
            result["attestation"] = _text(self.attestation)
        if self.attestation_formats:
            result["attestationFormats"] = [_text(f) for f in self.attestation_formats]
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        return result


@dataclass
class PublicKeyCredentialRequestOptions:
    """The parameters passed to get() to generate an assertion."""

    challenge: bytes = b""
    timeout: int = 0
    relying_party_id: str = ""
    allowed_credentials: list[CredentialDescriptor] = field(default_factory=list)
    user_verification: str = ""
    hints: list[PublicKeyCredentialHints | str] = field(default_factory=list)
    extensions: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation, leaving out empty optional members."""
        result: dict[str, Any] = {"challenge": encode_url_base64(self.challenge)}
        if self.timeout:
            result["timeout"] = self.timeout
        if self.relying_party_id:
            result["rpId"] = self.relying_party_id
        if self.allowed_credentials:
            result["allowCredentials"] = [c.to_dict() for c in self.allowed_credentials]
        if self.user_verification:
            result["userVerification"] = _text(self.user_verification)
        if self.hints:
            result["hints"] = [_text(h) for h in self.hints]
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        return result

    def get_allowed_credential_ids(self) -> list[bytes]:
        """Return the credential IDs of the allowed credentials, in order."""
        return [bytes(c.credential_id) for c in self.allowed_credentials]


@dataclass
class CredentialCreation:
    """The credential creation payload sent to the user agent."""

    response: PublicKeyCredentialCreationOptions = field(
        default_factory=PublicKeyCredentialCreationOptions
    )
    mediation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        result: dict[str, Any] = {"publicKey": self.response.to_dict()}
        if self.mediation:
            result["mediation"] = _text(self.mediation)
        return result


@dataclass
class CredentialAssertion:
    """The assertion payload sent to the user agent."""

    response: PublicKeyCredentialRequestOptions = field(
        default_factory=PublicKeyCredentialRequestOptions
    )
    mediation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        result: dict[str, Any] = {"publicKey": self.response.to_dict()}
        if self.mediation:
            result["mediation"] = _text(self.mediation)
        return result


@dataclass
class ServerResponse:
    """A simple status response from the server."""

    status: ServerResponseStatus | str = ServerResponseStatus.OK
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {"status": _text(self.status), "errorMessage": self.message}