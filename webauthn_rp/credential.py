"""Stored credential records."""

from __future__ import annotations

from dataclasses import dataclass, field

from .authenticator import Authenticator
from .options import CredentialDescriptor, CredentialType

_FLAG_USER_PRESENT = 0x01
_FLAG_USER_VERIFIED = 0x04
_FLAG_BACKUP_ELIGIBLE = 0x08
_FLAG_BACKUP_STATE = 0x10


@dataclass
class CredentialFlags:
    """The commonly stored authenticator data flags of a credential."""

    user_present: bool = False
    user_verified: bool = False
    backup_eligible: bool = False
    backup_state: bool = False
    _raw: int = field(default=0, init=False, repr=False)

    def protocol_value(self) -> int:
        """Return the raw flags byte these flags were derived from."""
        return self._raw


def new_credential_flags(flags: int) -> CredentialFlags:
    """Derive credential flags from the raw authenticator data flags byte."""
    result = CredentialFlags(
        user_present=bool(flags & _FLAG_USER_PRESENT),
        user_verified=bool(flags & _FLAG_USER_VERIFIED),
        backup_eligible=bool(flags & _FLAG_BACKUP_ELIGIBLE),
        backup_state=bool(flags & _FLAG_BACKUP_STATE),
    )
    result._raw = int(flags)
    return result


@dataclass
class CredentialAttestation:
    """The attestation values kept to re-validate a credential later."""

    client_data_json: bytes = b""
    client_data_hash: bytes = b""
    authenticator_data: bytes = b""
    public_key_algorithm: int = 0
    object: bytes = b""


@dataclass
class Credential:
    """A credential record: everything needed to verify future logins."""

    id: bytes = b""
    public_key: bytes = b""
    attestation_type: str = ""
    transport: list[str] = field(default_factory=list)
    flags: CredentialFlags = field(default_factory=CredentialFlags)
    authenticator: Authenticator = field(default_factory=Authenticator)
    attestation: CredentialAttestation = field(default_factory=CredentialAttestation)

    def descriptor(self) -> CredentialDescriptor:
        """Return the credential descriptor referring to this credential."""
        return CredentialDescriptor(
            type=CredentialType.PUBLIC_KEY,
            credential_id=bytes(self.id),
            transport=list(self.transport),
            attestation_type=self.attestation_type,
        )


class Credentials(list):
    """A list of credentials."""

    def credential_descriptors(self) -> list[CredentialDescriptor]:
        """Return the descriptors of all credentials, in order."""
        return [credential.descriptor() for credential in self]