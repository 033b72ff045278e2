"""WebAuthn relying party helpers: ceremony options, sessions, credentials and COSE keys."""

__version__ = "0.1.0"

__all__ = [
    "authenticator",
    "config",
    "cose",
    "credential",
    "ctap_cbor",
    "errors",
    "login",
    "options",
    "registration",
    "relying_party",
]