from webauthn_rp.authenticator import Authenticator
from webauthn_rp.credential import (
    Credential,
    CredentialAttestation,
    CredentialFlags,
    Credentials,
    new_credential_flags,
)
from webauthn_rp.options import CredentialDescriptor, CredentialType


def test_flags_all_set():
    flags = new_credential_flags(0x01 | 0x04 | 0x08 | 0x10)
    assert flags.user_present
    assert flags.user_verified
    assert flags.backup_eligible
    assert flags.backup_state
    assert flags.protocol_value() == 0x1D


def test_flags_none_set():
    flags = new_credential_flags(0)
    assert (flags.user_present, flags.user_verified, flags.backup_eligible, flags.backup_state) == (
        False,
        False,
        False,
        False,
    )
    assert flags.protocol_value() == 0


def test_flags_keep_raw_value_with_other_bits():
    flags = new_credential_flags(0x45)
    assert flags.user_present is True
    assert flags.user_verified is True
    assert flags.backup_eligible is False
    assert flags.backup_state is False
    assert flags.protocol_value() == 0x45


def test_flags_built_directly_have_zero_protocol_value():
    flags = CredentialFlags(user_present=True)
    assert flags.protocol_value() == 0


def test_descriptor():
    credential = Credential(
        id=b"1234",
        public_key=b"key-bytes",
        attestation_type="fido-u2f",
        transport=["usb", "nfc"],
    )
    assert credential.descriptor() == CredentialDescriptor(
        type=CredentialType.PUBLIC_KEY,
        credential_id=b"1234",
        transport=["usb", "nfc"],
        attestation_type="fido-u2f",
    )


def test_descriptor_of_empty_credential():
    descriptor = Credential().descriptor()
    assert descriptor.type == CredentialType.PUBLIC_KEY
    assert descriptor.credential_id == b""
    assert descriptor.transport == []
    assert descriptor.to_dict() == {"type": "public-key", "id": ""}


def test_credential_descriptors_keep_order():
    credentials = Credentials(
        [Credential(id=b"a"), Credential(id=b"b", transport=["internal"])]
    )
    descriptors = credentials.credential_descriptors()
    assert [d.credential_id for d in descriptors] == [b"a", b"b"]
    assert descriptors[1].transport == ["internal"]


def test_credential_descriptors_empty():
    assert Credentials().credential_descriptors() == []


def test_credential_holds_authenticator_and_attestation():
    credential = Credential(
        id=b"id",
        authenticator=Authenticator(aaguid=bytes(16), sign_count=3),
        attestation=CredentialAttestation(public_key_algorithm=-7),
    )
    credential.authenticator.update_counter(4)
    assert credential.authenticator.sign_count == 4
    assert credential.attestation.public_key_algorithm == -7