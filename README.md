# webauthn-rp

Server-side building blocks for a WebAuthn relying party.

- `webauthn_rp.relying_party.WebAuthn` starts registration and login
  ceremonies. Each `begin_*` method returns the options to send to the
  browser (`CredentialCreation` or `CredentialAssertion`, each with a
  `to_dict()` giving the JSON shape) and the `SessionData` to keep on the
  server.
- `webauthn_rp.login` and `webauthn_rp.registration` hold the option
  functions (`with_challenge`, `with_user_verification`,
  `with_login_relying_party_id`, `with_app_id_extension`, `with_exclusions`,
  `with_resident_key_requirement`, `with_registration_relying_party_id`,
  `with_registration_relying_party_name`, and more) and the credential
  parameter lists `credential_parameters_default()`,
  `credential_parameters_recommended_l3()` and
  `credential_parameters_extended_l3()`.
- `webauthn_rp.config` has `Config`, `TimeoutConfig`, `TimeoutsConfig`,
  `TopOriginVerificationMode`, the abstract `User` and `SessionData`.
  `Config.validate()` requires at least one entry in `rp_origins`, checks
  that `rp_id` parses as a URI and fills in the default timeouts:
  300 000 ms, and 120 000 ms when user verification is discouraged.
- `webauthn_rp.credential` describes stored credential records
  (`Credential`, `Credentials`, `CredentialFlags`, `CredentialAttestation`).
  `webauthn_rp.authenticator.Authenticator.update_counter` sets
  `clone_warning` when a signature counter fails to increase.
- `webauthn_rp.options` holds the option data classes and enums
  (`ConveyancePreference`, `AttestationFormat`, `PublicKeyCredentialHints`, ...).
- `webauthn_rp.cose` parses COSE public keys (EC2, RSA and OKP/Ed25519),
  verifies signatures and renders keys as PEM.
- `webauthn_rp.ctap_cbor` encodes and decodes CBOR in the CTAP2 canonical
  form (no duplicate keys, no indefinite lengths, no tags, at most four
  nesting levels).
- `webauthn_rp.errors.WebAuthnError` carries `type`, `details` and
  `dev_info`; `with_details`, `with_info` and `with_error` return copies.

## Installation

```
pip install .
```

To install the test dependencies as well, run `pip install ".[test]"`.

## Starting a registration

```python
from webauthn_rp.config import Config, User
from webauthn_rp.relying_party import WebAuthn
from webauthn_rp.registration import with_resident_key_requirement

class Account(User):
    def __init__(self, handle, credentials=()):
        self._handle = handle
        self._credentials = list(credentials)

    def webauthn_id(self):
        return self._handle

    def webauthn_name(self):
        return "alex"

    def webauthn_display_name(self):
        return "Alex Example"

    def webauthn_credentials(self):
        return self._credentials

rp = WebAuthn(Config(
    rp_id="app.example.com",
    rp_display_name="Example App",
    rp_origins=["https://app.example.com"],
))

creation, session = rp.begin_registration(
    Account(b"user-handle"),
    with_resident_key_requirement("required"),
)
payload = creation.to_dict()  # serialise as JSON for the browser
```

## Starting a login

A login for a known user allows only that user's stored credentials:

```python
from webauthn_rp.credential import Credential
from webauthn_rp.login import with_user_verification

account = Account(b"user-handle", [Credential(id=b"credential-id")])
assertion, session = rp.begin_login(account, with_user_verification("required"))
```

For a discoverable (passkey) login, use `rp.begin_discoverable_login()`.
`begin_mediated_login`, `begin_discoverable_mediated_login` and
`begin_mediated_registration` take a mediation requirement as well.

A user with no credentials makes `begin_login` raise `WebAuthnError`. An
unusable configuration, a missing relying party ID or display name, an ID
that does not parse as a URI, or a challenge shorter than 16 bytes raises
`ValueError`. When `enforce` is set on a `TimeoutConfig`, the session gets
an `expires` time.

## Verifying a signature with a COSE key

```python
from webauthn_rp.cose import parse_public_key, verify_signature

key = parse_public_key(credential_public_key_bytes)
ok = verify_signature(key, signed_data, signature)
```

EC2 and Ed25519 keys return `False` for a bad signature; RSA keys raise
`cryptography.exceptions.InvalidSignature`. An unsupported key type or
algorithm raises `webauthn_rp.cose.COSEError`.

## What this package does not do

It only begins ceremonies. It does not parse the browser's registration or
login responses, verify attestation statements or assertion signatures
against session data, check metadata services, or finish a registration or
login. It has no HTTP server and no storage: keeping `SessionData` and
credentials is up to the application.

## Running the tests

```
pytest
```