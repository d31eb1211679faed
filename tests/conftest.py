import os
import tempfile

# logs / config.json go to a scratch home, must run before filevault is imported
os.environ.setdefault("FILEVAULT_HOME", tempfile.mkdtemp(prefix="filevault-test-"))

import pytest

from filevault.storage.local_disk import LocalDisk


@pytest.fixture
def disk(tmp_path):
    return LocalDisk(tmp_path)


@pytest.fixture
def key256():
    return bytes(range(32))


@pytest.fixture
def key128():
    return bytes(range(16))
