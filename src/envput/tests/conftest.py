import pytest

from envput import StorageNotFoundError
from envput.config import Config
from envput.storage import BlobStorage

PASSPHRASE = "correct-horse-battery-staple"

CONFIG = """\
[envput]
project = myapp
encryption_key = {passphrase}

[aws]
region = eu-central-1
bucket = secrets-bucket
bucket_path = /configs/
access_key_id =
secret_access_key =

[environment:development]
file = .env.development

[environment:production]
file = .env.production
"""


class MemoryStorage(BlobStorage):
    def __init__(self):
        self.blobs = {}

    def url(self, key):
        return f"memory://{key}"

    def put(self, key, data):
        self.blobs[key] = bytes(data)

    def get(self, key):
        if key not in self.blobs:
            raise StorageNotFoundError.from_context(self.url(key))
        return self.blobs[key]

    def exists(self, key):
        return key in self.blobs


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A project directory with a config for two environments."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".envputrc").write_text(
        CONFIG.format(passphrase=PASSPHRASE)
    )
    return tmp_path


@pytest.fixture
def storage(monkeypatch):
    storage = MemoryStorage()
    monkeypatch.setattr(Config, "storage", lambda self: storage)
    return storage
