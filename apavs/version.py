"""Release version of the package."""

_SEMVER = "1.3.0"


def get() -> str:
    """Return the release version."""
    return _SEMVER