[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webauthn-rp"
version = "0.1.0"
description = "WebAuthn relying party helpers: ceremony options, sessions, credentials and COSE key handling"
requires-python = ">=3.10"
keywords = ["webauthn", "fido2", "passkeys", "cose", "ctap2", "authentication"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Internet :: WWW/HTTP :: Session",
]
dependencies = [
    "cbor2",
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["webauthn_rp"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
