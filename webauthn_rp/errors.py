"""Errors raised while processing WebAuthn ceremonies."""

from __future__ import annotations


class WebAuthnError(Exception):
    """A protocol error carrying a short type name, details and debugging information."""

    def __init__(
        self,
        type: str,
        details: str = "",
        dev_info: str = "",
        err: BaseException | None = None,
    ) -> None:
        super().__init__(type, details, dev_info, err)
        self.type = type
        self.details = details
        self.dev_info = dev_info
        self.err = err
        if err is not None:
            self.__cause__ = err

    def __str__(self) -> str:
        return self.details

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(type={self.type!r}, details={self.details!r}, "
            f"dev_info={self.dev_info!r})"
        )

    def _replace(self, **changes) -> WebAuthnError:
        fields = {
            "type": self.type,
            "details": self.details,
            "dev_info": self.dev_info,
            "err": self.err,
        }
        fields.update(changes)
        return self.__class__(**fields)

    def with_details(self, details: str) -> WebAuthnError:
        """Return a copy of this error with different details."""
        return self._replace(details=details)

    def with_info(self, info: str) -> WebAuthnError:
        """Return a copy of this error with different debugging information."""
        return self._replace(dev_info=info)

    def with_error(self, err: BaseException) -> WebAuthnError:
        """Return a copy of this error wrapping an inner error."""
        return self._replace(err=err)

    def to_dict(self) -> dict[str, str]:
        """Return the JSON representation of this error."""
        return {"type": self.type, "error": self.details, "debug": self.dev_info}


ERR_BAD_REQUEST = WebAuthnError("invalid_request", "Error reading the request data")
ERR_CHALLENGE_MISMATCH = WebAuthnError(
    "challenge_mismatch", "Stored challenge and received challenge do not match"
)
ERR_PARSING_DATA = WebAuthnError("parse_error", "Error parsing the authenticator response")
ERR_AUTH_DATA = WebAuthnError("auth_data", "Error verifying the authenticator data")
ERR_VERIFICATION = WebAuthnError(
    "verification_error", "Error validating the authenticator response"
)
ERR_ATTESTATION = WebAuthnError(
    "attestation_error", "Error validating the attestation data provided"
)
ERR_INVALID_ATTESTATION = WebAuthnError("invalid_attestation", "Invalid attestation data")
ERR_METADATA = WebAuthnError("invalid_metadata", "")
ERR_ATTESTATION_FORMAT = WebAuthnError("invalid_attestation", "Invalid attestation format")
ERR_ATTESTATION_CERTIFICATE = WebAuthnError(
    "invalid_certificate", "Invalid attestation certificate"
)
ERR_ASSERTION_SIGNATURE = WebAuthnError(
    "invalid_signature",
    "Assertion Signature against auth data and client hash is not valid",
)
ERR_UNSUPPORTED_KEY = WebAuthnError("invalid_key_type", "Unsupported Public Key Type")
ERR_UNSUPPORTED_ALGORITHM = WebAuthnError(
    "unsupported_key_algorithm", "Unsupported public key algorithm"
)
ERR_NOT_SPEC_IMPLEMENTED = WebAuthnError(
    "spec_unimplemented", "This field is not yet supported by the WebAuthn spec"
)
ERR_NOT_IMPLEMENTED = WebAuthnError(
    "not_implemented", "This field is not yet supported by this library"
)