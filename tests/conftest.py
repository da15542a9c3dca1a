import os

import pytest


@pytest.fixture(autouse=True)
def _isolated_settings_environment(monkeypatch):
    """Keep SCOPEBIND_* variables from the outer environment out of every test."""
    for name in list(os.environ):
        if name.upper().startswith("SCOPEBIND_"):
            monkeypatch.delenv(name, raising=False)
