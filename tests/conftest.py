from __future__ import annotations

import os

import pytest

_ENV_PREFIXES = ("LITELLM_", "PROXYKEEPER_")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's proxy credentials out of the test run."""

    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(name)
