from datetime import timedelta

import pytest

from webauthn_rp.config import (
    Config,
    TimeoutConfig,
    TimeoutsConfig,
    TopOriginVerificationMode,
    User,
)
from webauthn_rp.credential import Credential


class _ExampleUser(User):
    def __init__(self, user_id, credentials=None):
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
    kwargs.setdefault("rp_origins", ["https://example.com"])
    return Config(**kwargs)


def test_validate_applies_default_timeouts():
    config = _config(rp_id="https://example.com")
    config.validate()
    assert config.timeouts.login.timeout == timedelta(milliseconds=300000)
    assert config.timeouts.login.timeout_uvd == timedelta(milliseconds=120000)
    assert config.timeouts.registration.timeout == timedelta(milliseconds=300000)
    assert config.timeouts.registration.timeout_uvd == timedelta(milliseconds=120000)


def test_validate_replaces_sub_millisecond_timeout():
    config = _config(
        timeouts=TimeoutsConfig(login=TimeoutConfig(timeout=timedelta(microseconds=500)))
    )
    config.validate()
    assert config.timeouts.login.timeout == timedelta(milliseconds=300000)


def test_validate_keeps_custom_timeouts():
    custom = timedelta(seconds=42)
    config = _config(
        timeouts=TimeoutsConfig(
            registration=TimeoutConfig(enforce=True, timeout=custom, timeout_uvd=custom)
        )
    )
    config.validate()
    assert config.timeouts.registration.timeout == custom
    assert config.timeouts.registration.timeout_uvd == custom
    assert config.timeouts.registration.enforce is True


def test_validate_requires_origins():
    with pytest.raises(ValueError) as info:
        Config(rp_id="https://example.com").validate()
    assert str(info.value) == "must provide at least one value to the 'RPOrigins' field"


def test_validate_default_mode_becomes_ignore():
    config = _config()
    config.validate()
    assert config.rp_top_origin_verification_mode == TopOriginVerificationMode.IGNORE


def test_validate_implicit_mode_requires_top_origins():
    config = _config(rp_top_origin_verification_mode=TopOriginVerificationMode.IMPLICIT)
    with pytest.raises(ValueError, match="RPTopOrigins"):
        config.validate()


def test_validate_implicit_mode_with_top_origins():
    config = _config(
        rp_top_origin_verification_mode=TopOriginVerificationMode.IMPLICIT,
        rp_top_origins=["https://example.com"],
    )
    config.validate()
    assert config.rp_top_origin_verification_mode == TopOriginVerificationMode.IMPLICIT


def test_validate_rejects_invalid_rp_id():
    config = _config(rp_id="---::~!!~@#M!@OIK#N!@IOK@@@@@@@@@@")
    with pytest.raises(ValueError) as info:
        config.validate()
    assert str(info.value) == (
        "field 'RPID' is not a valid URI: parse \"---::~!!~@\": "
        "first path segment in URL cannot contain colon"
    )


@pytest.mark.parametrize(
    "rp_id", ["https://example.com", "example.com", "localhost:8080", "https://a.example.com"]
)
def test_validate_accepts_valid_rp_ids(rp_id):
    config = _config(rp_id=rp_id)
    config.validate()
    assert config.rp_id == rp_id
    assert config.rp_top_origin_verification_mode == TopOriginVerificationMode.IGNORE


def test_validate_rejects_missing_scheme():
    with pytest.raises(ValueError, match="missing protocol scheme"):
        _config(rp_id=":example").validate()


def test_validate_rejects_bad_port():
    with pytest.raises(ValueError, match="after host"):
        _config(rp_id="https://example.com:port").validate()


def test_validate_runs_once():
    config = _config()
    config.validate()
    config.rp_origins = []
    config.validate()
    assert config.rp_origins == []
    assert config.rp_top_origin_verification_mode == TopOriginVerificationMode.IGNORE


def test_validate_failure_can_be_retried():
    config = Config()
    with pytest.raises(ValueError):
        config.validate()
    config.rp_origins = ["https://example.com"]
    config.validate()
    assert config.rp_top_origin_verification_mode == TopOriginVerificationMode.IGNORE


def test_user_is_abstract():
    with pytest.raises(TypeError):
        User()


def test_concrete_user():
    credential = Credential(id=b"1234")
    user = _ExampleUser(b"123", [credential])
    assert user.webauthn_id() == b"123"
    assert user.webauthn_name() == "newUser"
    assert user.webauthn_display_name() == "New User"
    assert user.webauthn_credentials() == [credential]