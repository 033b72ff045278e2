"""Authenticator state kept alongside a stored credential."""

from __future__ import annotations

from dataclasses import dataclass

from .options import AuthenticatorSelection


@dataclass
class Authenticator:
    """The authenticator information stored with a credential.

    ``clone_warning`` is set when a login reports a signature counter that
    did not increase, which suggests the credential may have been cloned.
    """

    aaguid: bytes = b""
    sign_count: int = 0
    clone_warning: bool = False
    attachment: str = ""

    def update_counter(self, auth_data_count: int) -> None:
        """Record a new signature counter, or flag a possible clone.

        A counter that is not greater than the stored one sets the clone
        warning and leaves the stored counter alone, unless both are zero.
        """
        if auth_data_count <= self.sign_count and (
            auth_data_count != 0 or self.sign_count != 0
        ):
            self.clone_warning = True
            return
        self.sign_count = auth_data_count


def select_authenticator(att: str, rrk: bool | None, uv: str) -> AuthenticatorSelection:
    """Build authenticator selection criteria from attachment, resident key and verification values."""
    return AuthenticatorSelection(
        authenticator_attachment=att,
        require_resident_key=rrk,
        user_verification=uv,
    )