"""Beginning registration ceremonies and the options that shape them."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from .config import ERR_FMT_CONFIG_VALIDATE, Config, SessionData, User, _parse_uri
from .cose import COSEAlgorithmIdentifier
from .login import CREDENTIAL_TYPE_FIDO_U2F, VERIFICATION_DISCOURAGED, create_challenge
from .options import (
    EXTENSION_APP_ID_EXCLUDE,
    AttestationFormat,
    AuthenticatorSelection,
    ConveyancePreference,
    CredentialCreation,
    CredentialDescriptor,
    CredentialParameter,
    CredentialType,
    PublicKeyCredentialCreationOptions,
    PublicKeyCredentialHints,
    RelyingPartyEntity,
    UserEntity,
    _text,
    encode_url_base64,
)

RESIDENT_KEY_REQUIREMENT_REQUIRED = "required"

RegistrationOption = Callable[[PublicKeyCredentialCreationOptions], None]

_MILLISECOND = timedelta(milliseconds=1)


def _parameters(*algorithms: COSEAlgorithmIdentifier) -> list[CredentialParameter]:
    return [CredentialParameter(CredentialType.PUBLIC_KEY, alg) for alg in algorithms]


def credential_parameters_default() -> list[CredentialParameter]:
    """Return the default credential parameter list."""
    a = COSEAlgorithmIdentifier
    return _parameters(
        a.ES256, a.ES384, a.ES512, a.RS256, a.RS384, a.RS512, a.PS256, a.PS384, a.PS512, a.EDDSA
    )


def credential_parameters_recommended_l3() -> list[CredentialParameter]:
    """Return the Level 3 recommended credential parameter list."""
    a = COSEAlgorithmIdentifier
    return _parameters(a.EDDSA, a.ES256, a.RS256)


def credential_parameters_extended_l3() -> list[CredentialParameter]:
    """Return the Level 3 recommended list followed by every other supported algorithm."""
    a = COSEAlgorithmIdentifier
    return _parameters(
        a.EDDSA, a.ES256, a.ES384, a.ES512, a.RS256, a.RS384, a.RS512, a.PS256, a.PS384, a.PS512
    )


def with_credential_parameters(credential_params: list[CredentialParameter]) -> RegistrationOption:
    """Replace the credential parameters."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.parameters = list(credential_params)

    return apply


def with_exclusions(exclude_list: list[CredentialDescriptor]) -> RegistrationOption:
    """Set the credentials to exclude from registration."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.credential_exclude_list = list(exclude_list)

    return apply


def with_authenticator_selection(
    authenticator_selection: AuthenticatorSelection,
) -> RegistrationOption:
    """Replace the authenticator selection criteria."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.authenticator_selection = dataclasses.replace(authenticator_selection)

    return apply


def with_resident_key_requirement(requirement: str) -> RegistrationOption:
    """Set both the resident key requirement and the legacy require-resident-key flag."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        selection = options.authenticator_selection
        selection.resident_key = requirement
        selection.require_resident_key = _text(requirement) == RESIDENT_KEY_REQUIREMENT_REQUIRED

    return apply


def with_public_key_credential_hints(
    hints: list[PublicKeyCredentialHints | str],
) -> RegistrationOption:
    """Set the credential hints for the registration."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.hints = list(hints)

    return apply


def with_conveyance_preference(preference: ConveyancePreference | str) -> RegistrationOption:
    """Set the attestation conveyance preference."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.attestation = preference

    return apply


def with_attestation_formats(formats: list[AttestationFormat | str]) -> RegistrationOption:
    """Set the preferred attestation formats."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.attestation_formats = list(formats)

    return apply


def with_extensions(extensions: dict[str, Any] | None) -> RegistrationOption:
    """Set the requested extensions."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.extensions = extensions

    return apply


def with_app_id_exclude_extension(appid: str) -> RegistrationOption:
    """Request the appidExclude extension when an excluded credential was made by a FIDO U2F authenticator."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        for credential in options.credential_exclude_list:
            if credential.attestation_type == CREDENTIAL_TYPE_FIDO_U2F:
                if options.extensions is None:
                    options.extensions = {}
                options.extensions[EXTENSION_APP_ID_EXCLUDE] = appid

    return apply


def with_registration_relying_party_id(rp_id: str) -> RegistrationOption:
    """Set the Relying Party ID for this registration."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.relying_party.id = rp_id

    return apply


def with_registration_relying_party_name(name: str) -> RegistrationOption:
    """Set the Relying Party display name for this registration."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.relying_party.name = name

    return apply


def begin_registration(
    config: Config,
    user: User,
    mediation: str,
    *args: RegistrationOption,
) -> tuple[CredentialCreation, SessionData]:
    """Build the credential creation payload for the user agent and the session data to keep.

    Raises ValueError when the configuration or the resulting options are invalid.
    """
    try:
        config.validate()
    except ValueError as exc:
        raise ValueError(ERR_FMT_CONFIG_VALIDATE.format(exc)) from exc

    challenge = create_challenge()
    user_id = bytes(user.webauthn_id() or b"")

    entity_user_id: Any
    if config.encode_user_id_as_string:
        entity_user_id = user_id.decode("utf-8", errors="replace")
    else:
        entity_user_id = user_id

    creation = CredentialCreation(
        response=PublicKeyCredentialCreationOptions(
            relying_party=RelyingPartyEntity(name=config.rp_display_name, id=config.rp_id),
            user=UserEntity(
                name=user.webauthn_name(),
                display_name=user.webauthn_display_name(),
                id=entity_user_id,
            ),
            challenge=challenge,
            parameters=credential_parameters_default(),
            authenticator_selection=dataclasses.replace(config.authenticator_selection),
            attestation=config.attestation_preference,
        ),
        mediation=mediation,
    )
    response = creation.response

    for option in args:
        option(response)

    if not response.relying_party.id:
        raise ValueError(
            "error generating credential creation: the relying party id must be provided via "
            "the configuration or a functional option for a creation"
        )
    try:
        _parse_uri(response.relying_party.id)
    except ValueError as exc:
        raise ValueError(
            "error generating credential creation: the relying party id failed to validate as "
            f"it's not a valid uri with error: {exc}"
        ) from exc

    if not response.relying_party.name:
        raise ValueError(
            "error generating credential creation: the relying party display name must be "
            "provided via the configuration or a functional option for a creation"
        )

    timeouts = config.timeouts.registration
    if response.timeout == 0:
        if _text(response.authenticator_selection.user_verification) == VERIFICATION_DISCOURAGED:
            response.timeout = int(timeouts.timeout_uvd // _MILLISECOND)
        else:
            response.timeout = int(timeouts.timeout // _MILLISECOND)

    session = SessionData(
        challenge=encode_url_base64(challenge),
        relying_party_id=response.relying_party.id,
        user_id=user_id,
        user_verification=response.authenticator_selection.user_verification,
        cred_params=list(response.parameters),
        mediation=creation.mediation,
    )

    if timeouts.enforce:
        session.expires = datetime.now(timezone.utc) + timedelta(milliseconds=response.timeout)

    return creation, session