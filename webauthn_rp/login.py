"""Beginning login (assertion) ceremonies and the options that shape them."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from .config import ERR_FMT_CONFIG_VALIDATE, Config, SessionData, _parse_uri
from .options import (
    EXTENSION_APP_ID,
    AttestationFormat,
    CredentialAssertion,
    CredentialDescriptor,
    PublicKeyCredentialHints,
    PublicKeyCredentialRequestOptions,
    _text,
)

CHALLENGE_LENGTH = 32
MIN_CHALLENGE_LENGTH = 16
VERIFICATION_DISCOURAGED = "discouraged"
CREDENTIAL_TYPE_FIDO_U2F = AttestationFormat.FIDO_U2F.value

LoginOption = Callable[[PublicKeyCredentialRequestOptions], None]

_MILLISECOND = timedelta(milliseconds=1)


def create_challenge() -> bytes:
    """Return a new random challenge of 32 bytes."""
    return secrets.token_bytes(CHALLENGE_LENGTH)


def _milliseconds(duration: timedelta) -> int:
    return int(duration // _MILLISECOND)


def _validated(config: Config) -> None:
    try:
        config.validate()
    except ValueError as exc:
        raise ValueError(ERR_FMT_CONFIG_VALIDATE.format(exc)) from exc


def with_allowed_credentials(allow_list: list[CredentialDescriptor]) -> LoginOption:
    """Replace the allowed credentials."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.allowed_credentials = list(allow_list)

    return apply


def with_user_verification(user_verification: str) -> LoginOption:
    """Set the user verification requirement."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.user_verification = user_verification

    return apply


def with_assertion_public_key_credential_hints(
    hints: list[PublicKeyCredentialHints | str],
) -> LoginOption:
    """Set the credential hints for the login."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.hints = list(hints)

    return apply


def with_assertion_extensions(extensions: dict[str, Any] | None) -> LoginOption:
    """Set the requested extensions."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.extensions = extensions

    return apply


def with_app_id_extension(appid: str) -> LoginOption:
    """Request the appid extension when an allowed credential was made by a FIDO U2F authenticator."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        for credential in options.allowed_credentials:
            if credential.attestation_type == CREDENTIAL_TYPE_FIDO_U2F:
                if options.extensions is None:
                    options.extensions = {}
                options.extensions[EXTENSION_APP_ID] = appid

    return apply


def with_login_relying_party_id(rp_id: str) -> LoginOption:
    """Set the Relying Party ID for this login."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.relying_party_id = rp_id

    return apply


def with_challenge(challenge: bytes) -> LoginOption:
    """Use the given challenge instead of a random one; it must hold at least 16 bytes."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.challenge = bytes(challenge)

    return apply


def begin_login(
    config: Config,
    user_id: bytes | None,
    allowed_credentials: list[CredentialDescriptor] | None,
    mediation: str,
    *args: LoginOption,
) -> tuple[CredentialAssertion, SessionData]:
    """Build the assertion payload for the user agent and the session data to keep.

    Raises ValueError when the configuration or the resulting options are invalid.
    """
    _validated(config)

    assertion = CredentialAssertion(
        response=PublicKeyCredentialRequestOptions(
            relying_party_id=config.rp_id,
            user_verification=config.authenticator_selection.user_verification,
            allowed_credentials=list(allowed_credentials or []),
        ),
        mediation=mediation,
    )
    response = assertion.response

    for option in args:
        option(response)

    if not response.challenge:
        response.challenge = create_challenge()

    if len(response.challenge) < MIN_CHALLENGE_LENGTH:
        raise ValueError("error generating assertion: the challenge must be at least 16 bytes")

    if not response.relying_party_id:
        raise ValueError(
            "error generating assertion: the relying party id must be provided via the "
            "configuration or a functional option for a login"
        )
    try:
        _parse_uri(response.relying_party_id)
    except ValueError as exc:
        raise ValueError(
            "error generating assertion: the relying party id failed to validate as it's "
            f"not a valid uri with error: {exc}"
        ) from exc

    timeouts = config.timeouts.login
    if response.timeout == 0:
        if _text(response.user_verification) == VERIFICATION_DISCOURAGED:
            response.timeout = _milliseconds(timeouts.timeout_uvd)
        else:
            response.timeout = _milliseconds(timeouts.timeout)

    session = SessionData(
        challenge=_challenge_text(response.challenge),
        relying_party_id=response.relying_party_id,
        user_id=user_id if user_id is not None else b"",
        allowed_credential_ids=response.get_allowed_credential_ids(),
        user_verification=response.user_verification,
        extensions=response.extensions,
    )

    if timeouts.enforce:
        session.expires = datetime.now(timezone.utc) + timedelta(milliseconds=response.timeout)

    return assertion, session


def _challenge_text(challenge: bytes) -> str:
    from .options import encode_url_base64

    return encode_url_base64(challenge)