from __future__ import annotations

import os
import tempfile

import pytest

# Point the data directory (logs, images, file index) at a scratch folder and
# drop networking overrides from the developer's shell before imagetool loads.
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="imagetool-tests-")
for var in ("DALLE_REVERSE_PROXY", "PROXY", "DALLE3_SYSTEM_PROMPT", "FILE_STRATEGY"):
    os.environ.pop(var, None)


@pytest.fixture(autouse=True)
def reset_cost():
    """Each test starts with an empty cost counter."""
    from imagetool.core import cost

    cost.reset_cycle()
    yield
    cost.reset_cycle()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Isolated data directory for tests that write files."""
    from imagetool.core.config import settings

    monkeypatch.setattr(settings, "data_dir", str(tmp_path))
    return tmp_path
