from datetime import datetime, timedelta, timezone

import pytest

from webauthn_rp.config import Config, TimeoutConfig, TimeoutsConfig, User
from webauthn_rp.options import (
    AuthenticatorSelection,
    CredentialDescriptor,
    PublicKeyCredentialCreationOptions,
    encode_url_base64,
)
from webauthn_rp.registration import (
    begin_registration,
    credential_parameters_default,
    credential_parameters_extended_l3,
    credential_parameters_recommended_l3,
    with_app_id_exclude_extension,
    with_attestation_formats,
    with_authenticator_selection,
    with_conveyance_preference,
    with_credential_parameters,
    with_exclusions,
    with_extensions,
    with_public_key_credential_hints,
    with_registration_relying_party_id,
    with_registration_relying_party_name,
    with_resident_key_requirement,
)


class _User(User):
    def __init__(self, user_id=b"", credentials=None):
        self._id = user_id
        self._credentials = credentials or []

    def webauthn_id(self):
        return self._id

    def webauthn_name(self):
        return "newUser"

    def webauthn_display_name(self):
        return "New User"

    def webauthn_credentials(self):
        return self._credentials


def _config(**kwargs):
    base = {
        "rp_id": "https://example.com",
        "rp_display_name": "Test Display Name",
        "rp_origins": ["https://example.com"],
    }
    base.update(kwargs)
    return Config(**base)


@pytest.mark.parametrize(
    "config, opts, expected_id, expected_name",
    [
        (_config(), [], "https://example.com", "Test Display Name"),
        (
            _config(),
            [
                with_registration_relying_party_id("https://a.example.com"),
                with_registration_relying_party_name("Test Display Name2"),
            ],
            "https://a.example.com",
            "Test Display Name2",
        ),
        (
            Config(rp_origins=["https://example.com"]),
            [
                with_registration_relying_party_id("https://example.com"),
                with_registration_relying_party_name("Test Display Name"),
            ],
            "https://example.com",
            "Test Display Name",
        ),
    ],
)
def test_relying_party(config, opts, expected_id, expected_name):
    creation, _ = begin_registration(config, _User(), "", *opts)
    assert creation.response.relying_party.id == expected_id
    assert creation.response.relying_party.name == expected_name


@pytest.mark.parametrize(
    "config, opts, message",
    [
        (
            _config(),
            [
                with_registration_relying_party_id("---::~!!~@#M!@OIK#N!@IOK@@@@@@@@@@"),
                with_registration_relying_party_name("Test Display Name2"),
            ],
            "error generating credential creation: the relying party id failed to validate as "
            "it's not a valid uri with error: parse \"---::~!!~@\": first path segment in URL "
            "cannot contain colon",
        ),
        (
            Config(rp_origins=["https://example.com"]),
            [with_registration_relying_party_id("https://example.com")],
            "error generating credential creation: the relying party display name must be "
            "provided via the configuration or a functional option for a creation",
        ),
        (
            Config(rp_origins=["https://example.com"]),
            [with_registration_relying_party_name("Test Display Name")],
            "error generating credential creation: the relying party id must be provided via "
            "the configuration or a functional option for a creation",
        ),
    ],
)
def test_begin_registration_errors(config, opts, message):
    with pytest.raises(ValueError) as info:
        begin_registration(config, _User(), "", *opts)
    assert str(info.value) == message


@pytest.mark.parametrize(
    "as_string, expected",
    [
        (False, {"name": "newUser", "displayName": "New User", "id": "YWJj"}),
        (True, {"name": "newUser", "displayName": "New User", "id": "abc"}),
    ],
)
def test_user_id_encoding(as_string, expected):
    creation, _ = begin_registration(
        _config(encode_user_id_as_string=as_string), _User(b"abc"), ""
    )
    assert creation.response.user.to_dict() == expected


def test_session_and_defaults():
    creation, session = begin_registration(_config(), _User(b"abc"), "conditional")
    response = creation.response
    assert response.timeout == 300000
    assert len(response.challenge) == 32
    assert session.challenge == encode_url_base64(response.challenge)
    assert session.user_id == b"abc"
    assert session.mediation == "conditional"
    assert session.relying_party_id == "https://example.com"
    assert [int(p.algorithm) for p in session.cred_params] == [
        -7, -35, -36, -257, -258, -259, -37, -38, -39, -8,
    ]
    assert session.expires is None


def test_discouraged_verification_timeout():
    config = _config(authenticator_selection=AuthenticatorSelection(user_verification="discouraged"))
    creation, session = begin_registration(config, _User(), "")
    assert creation.response.timeout == 120000
    assert session.user_verification == "discouraged"


def test_enforced_timeout_sets_expiry():
    config = _config(
        timeouts=TimeoutsConfig(
            registration=TimeoutConfig(enforce=True, timeout=timedelta(milliseconds=60000))
        )
    )
    creation, session = begin_registration(config, _User(), "")
    assert creation.response.timeout == 60000
    assert session.expires <= datetime.now(timezone.utc) + timedelta(seconds=60)
    assert session.expires > datetime.now(timezone.utc) + timedelta(seconds=58)


def test_resident_key_option_does_not_change_config():
    config = _config()
    creation, _ = begin_registration(config, _User(), "", with_resident_key_requirement("required"))
    selection = creation.response.authenticator_selection
    assert selection.resident_key == "required"
    assert selection.require_resident_key is True
    assert config.authenticator_selection.resident_key == ""


def test_resident_key_preferred_is_not_required():
    options = PublicKeyCredentialCreationOptions()
    with_resident_key_requirement("preferred")(options)
    assert options.authenticator_selection.resident_key == "preferred"
    assert options.authenticator_selection.require_resident_key is False


def test_other_options():
    excluded = [CredentialDescriptor(credential_id=b"old")]
    params = credential_parameters_recommended_l3()
    creation, session = begin_registration(
        _config(),
        _User(),
        "",
        with_credential_parameters(params),
        with_exclusions(excluded),
        with_authenticator_selection(AuthenticatorSelection(authenticator_attachment="platform")),
        with_public_key_credential_hints(["client-device"]),
        with_conveyance_preference("direct"),
        with_attestation_formats(["packed"]),
        with_extensions({"credProps": True}),
    )
    data = creation.to_dict()["publicKey"]
    assert data["pubKeyCredParams"] == [
        {"type": "public-key", "alg": -8},
        {"type": "public-key", "alg": -7},
        {"type": "public-key", "alg": -257},
    ]
    assert data["excludeCredentials"] == [{"type": "public-key", "id": "b2xk"}]
    assert data["authenticatorSelection"] == {"authenticatorAttachment": "platform"}
    assert data["hints"] == ["client-device"]
    assert data["attestation"] == "direct"
    assert data["attestationFormats"] == ["packed"]
    assert data["extensions"] == {"credProps": True}
    assert len(session.cred_params) == 3


def test_app_id_exclude_extension():
    options = PublicKeyCredentialCreationOptions(
        credential_exclude_list=[
            CredentialDescriptor(credential_id=b"a", attestation_type="packed"),
            CredentialDescriptor(credential_id=b"b", attestation_type="fido-u2f"),
        ]
    )
    with_app_id_exclude_extension("https://example.com")(options)
    assert options.extensions == {"appidExclude": "https://example.com"}


def test_app_id_exclude_extension_without_u2f():
    options = PublicKeyCredentialCreationOptions(
        credential_exclude_list=[CredentialDescriptor(credential_id=b"a", attestation_type="none")]
    )
    with_app_id_exclude_extension("https://example.com")(options)
    assert options.extensions is None


def test_parameter_lists():
    assert [int(p.algorithm) for p in credential_parameters_recommended_l3()] == [-8, -7, -257]
    assert [int(p.algorithm) for p in credential_parameters_extended_l3()] == [
        -8, -7, -35, -36, -257, -258, -259, -37, -38, -39,
    ]
    assert {p.type.value for p in credential_parameters_default()} == {"public-key"}
    assert len(credential_parameters_default()) == 10