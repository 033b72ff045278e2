"""Relying Party configuration, users and session data."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any

from .credential import Credential
from .options import AuthenticatorSelection, CredentialParameter

ERR_FMT_FIELD_NOT_VALID_URI = "field '{}' is not a valid URI: {}"
ERR_FMT_CONFIG_VALIDATE = "error occurred validating the configuration: {}"

DEFAULT_TIMEOUT_UVD = timedelta(milliseconds=120000)
DEFAULT_TIMEOUT = timedelta(milliseconds=300000)

_MILLISECOND = timedelta(milliseconds=1)


class TopOriginVerificationMode(IntEnum):
    """How the top origin of a ceremony is verified."""

    DEFAULT = 0
    IGNORE = 1
    AUTO = 2
    IMPLICIT = 3
    EXPLICIT = 4


def _quote(value: str) -> str:
    out = []
    for ch in value:
        if ch in ('"', "\\"):
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\r":
            out.append("\\r")
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _is_hex(ch: str) -> bool:
    return ch in "0123456789abcdefABCDEF"


_HOST_ALLOWED = set("-_.~!$&'()*+,;=:[]<>\"")
_USERINFO_ALLOWED = set("-._:~!$&'()*+,;=%@")


def _check_escapes(value: str, host: bool = False) -> None:
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "%":
            chunk = value[i:i + 3]
            if len(chunk) < 3 or not (_is_hex(chunk[1]) and _is_hex(chunk[2])):
                raise ValueError(f"invalid URL escape {_quote(chunk)}")
            if host and int(chunk[1], 16) < 8 and chunk != "%25":
                raise ValueError(f"invalid URL escape {_quote(chunk)}")
            i += 3
            continue
        if host and ch.isascii() and not ch.isalnum() and ch not in _HOST_ALLOWED:
            raise ValueError(f"invalid character {_quote(ch)} in host name")
        i += 1


def _valid_optional_port(port: str) -> bool:
    if port == "":
        return True
    return port.startswith(":") and all(c in "0123456789" for c in port[1:])


def _check_host(host: str) -> None:
    if host.startswith("["):
        end = host.rfind("]")
        if end < 0:
            raise ValueError("missing ']' in host")
        port = host[end + 1:]
        if not _valid_optional_port(port):
            raise ValueError(f"invalid port {_quote(port)} after host")
        _check_escapes(host[:end + 1])
        return
    colon = host.rfind(":")
    if colon != -1:
        port = host[colon:]
        if not _valid_optional_port(port):
            raise ValueError(f"invalid port {_quote(port)} after host")
    _check_escapes(host, host=True)


def _check_authority(authority: str) -> None:
    at = authority.rfind("@")
    if at < 0:
        _check_host(authority)
        return
    _check_host(authority[at + 1:])
    userinfo = authority[:at]
    if not all((c.isascii() and c.isalnum()) or c in _USERINFO_ALLOWED for c in userinfo):
        raise ValueError("net/url: invalid userinfo")
    _check_escapes(userinfo)


def _split_scheme(raw: str) -> tuple[str, str]:
    for i, ch in enumerate(raw):
        if ch.isascii() and ch.isalpha():
            continue
        if ch.isascii() and (ch.isdigit() or ch in "+-."):
            if i == 0:
                return "", raw
            continue
        if ch == ":":
            if i == 0:
                raise ValueError("missing protocol scheme")
            return raw[:i].lower(), raw[i + 1:]
        return "", raw
    return "", raw


def _check_reference(raw: str) -> None:
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in raw):
        raise ValueError("net/url: invalid control character in URL")
    if raw == "*":
        return
    scheme, rest = _split_scheme(raw)
    if rest.endswith("?") and rest.count("?") == 1:
        rest = rest[:-1]
    else:
        rest = rest.partition("?")[0]
    if not rest.startswith("/"):
        if scheme:
            return
        if ":" in rest.partition("/")[0]:
            raise ValueError("first path segment in URL cannot contain colon")
    if (scheme or not rest.startswith("///")) and rest.startswith("//"):
        authority, slash, path = rest[2:].partition("/")
        _check_authority(authority)
        rest = slash + path
    _check_escapes(rest)


def _parse_uri(raw: str) -> None:
    """Check that raw parses as a URI reference; raise ValueError describing the failure."""
    base, sep, fragment = raw.partition("#")
    try:
        _check_reference(base)
    except ValueError as exc:
        raise ValueError(f"parse {_quote(base)}: {exc}") from None
    if sep:
        try:
            _check_escapes(fragment)
        except ValueError as exc:
            raise ValueError(f"parse {_quote(raw)}: {exc}") from None


def _whole_milliseconds(duration: timedelta) -> int:
    return int(duration / _MILLISECOND)


@dataclass
class TimeoutConfig:
    """Timeouts for either logins or registrations."""

    enforce: bool = False
    timeout: timedelta = field(default_factory=timedelta)
    timeout_uvd: timedelta = field(default_factory=timedelta)


@dataclass
class TimeoutsConfig:
    """Timeouts for logins and registrations."""

    login: TimeoutConfig = field(default_factory=TimeoutConfig)
    registration: TimeoutConfig = field(default_factory=TimeoutConfig)


@dataclass
class Config:
    """The Relying Party configuration."""

    rp_id: str = ""
    rp_display_name: str = ""
    rp_origins: list[str] = field(default_factory=list)
    rp_top_origins: list[str] = field(default_factory=list)
    rp_top_origin_verification_mode: TopOriginVerificationMode = TopOriginVerificationMode.DEFAULT
    attestation_preference: str = ""
    authenticator_selection: AuthenticatorSelection = field(
        default_factory=AuthenticatorSelection
    )
    debug: bool = False
    encode_user_id_as_string: bool = False
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    mds: Any = None
    _validated: bool = field(default=False, init=False, repr=False, compare=False)

    def validate(self) -> None:
        """Check the configuration and fill in defaults.

        Raises ValueError when the configuration is unusable. Once it has
        passed, later calls do nothing.
        """
        if self._validated:
            return

        if self.rp_id:
            try:
                _parse_uri(self.rp_id)
            except ValueError as exc:
                raise ValueError(ERR_FMT_FIELD_NOT_VALID_URI.format("RPID", exc)) from exc

        for timeouts in (self.timeouts.login, self.timeouts.registration):
            if _whole_milliseconds(timeouts.timeout) == 0:
                timeouts.timeout = DEFAULT_TIMEOUT
            if _whole_milliseconds(timeouts.timeout_uvd) == 0:
                timeouts.timeout_uvd = DEFAULT_TIMEOUT_UVD

        if not self.rp_origins:
            raise ValueError("must provide at least one value to the 'RPOrigins' field")

        if self.rp_top_origin_verification_mode == TopOriginVerificationMode.DEFAULT:
            self.rp_top_origin_verification_mode = TopOriginVerificationMode.IGNORE
        elif (
            self.rp_top_origin_verification_mode == TopOriginVerificationMode.IMPLICIT
            and not self.rp_top_origins
        ):
            raise ValueError(
                "must provide at least one value to the 'RPTopOrigins' field when "
                "'RPTopOriginVerificationMode' field is set to "
                "protocol.TopOriginImplicitVerificationMode"
            )

        self._validated = True


class User(ABC):
    """A Relying Party user account as seen by WebAuthn ceremonies."""

    @abstractmethod
    def webauthn_id(self) -> bytes:
        """Return the opaque user handle, at most 64 bytes."""

    @abstractmethod
    def webauthn_name(self) -> str:
        """Return the human-palatable account name."""

    @abstractmethod
    def webauthn_display_name(self) -> str:
        """Return the human-palatable display name."""

    @abstractmethod
    def webauthn_credentials(self) -> list[Credential]:
        """Return the credentials owned by the user."""


@dataclass
class SessionData:
    """Data the Relying Party stores for the duration of a ceremony."""

    challenge: str = ""
    relying_party_id: str = ""
    user_id: bytes = b""
    allowed_credential_ids: list[bytes] = field(default_factory=list)
    expires: datetime | None = None
    user_verification: str = ""
    extensions: dict[str, Any] | None = None
    cred_params: list[CredentialParameter] = field(default_factory=list)
    mediation: str = ""