"""The Relying Party entry point for starting registration and login ceremonies."""

from __future__ import annotations

from .config import ERR_FMT_CONFIG_VALIDATE, Config, SessionData, User
from .errors import ERR_BAD_REQUEST
from .login import LoginOption
from .login import begin_login as _begin_login
from .options import CredentialAssertion, CredentialCreation
from .registration import RegistrationOption
from .registration import begin_registration as _begin_registration

MEDIATION_DEFAULT = ""


class WebAuthn:
    """A configured WebAuthn Relying Party.

    The configuration is validated when the Relying Party is created; an
    unusable configuration raises ValueError.
    """

    def __init__(self, config: Config) -> None:
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(ERR_FMT_CONFIG_VALIDATE.format(exc)) from exc
        self.config = config

    def begin_login(
        self, user: User, *args: LoginOption
    ) -> tuple[CredentialAssertion, SessionData]:
        """Start a login for a known user, allowing only that user's credentials."""
        return self.begin_mediated_login(user, MEDIATION_DEFAULT, *args)

    def begin_discoverable_login(
        self, *args: LoginOption
    ) -> tuple[CredentialAssertion, SessionData]:
        """Start a login where the user is identified by a discoverable credential."""
        return _begin_login(self.config, None, None, MEDIATION_DEFAULT, *args)

    def begin_mediated_login(
        self, user: User, mediation: str, *args: LoginOption
    ) -> tuple[CredentialAssertion, SessionData]:
        """Start a login for a known user with the given mediation requirement.

        Raises WebAuthnError when the user has no credentials.
        """
        credentials = user.webauthn_credentials() or []
        if not credentials:
            raise ERR_BAD_REQUEST.with_details("Found no credentials for user")
        allowed = [credential.descriptor() for credential in credentials]
        return _begin_login(self.config, user.webauthn_id(), allowed, mediation, *args)

    def begin_discoverable_mediated_login(
        self, mediation: str, *args: LoginOption
    ) -> tuple[CredentialAssertion, SessionData]:
        """Start a discoverable login with the given mediation requirement."""
        return _begin_login(self.config, None, None, mediation, *args)

    def begin_registration(
        self, user: User, *args: RegistrationOption
    ) -> tuple[CredentialCreation, SessionData]:
        """Start registering a new credential for the user."""
        return self.begin_mediated_registration(user, MEDIATION_DEFAULT, *args)

    def begin_mediated_registration(
        self, user: User, mediation: str, *args: RegistrationOption
    ) -> tuple[CredentialCreation, SessionData]:
        """Start registering a new credential with the given mediation requirement."""
        return _begin_registration(self.config, user, mediation, *args)