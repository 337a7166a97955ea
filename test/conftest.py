import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from google.api_core.exceptions import NotFound

# Make top-level packages (core, providers, storage_api, ...) importable
# when the repo is not pip-installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from core.settings import ServiceAccount  # noqa: E402


# ---------------------------------------------------------------------
# Fake GCS client (bucket -> blob), only what FirebaseStorageProvider touches
# ---------------------------------------------------------------------

class FakeBlob:
    def __init__(self, bucket: "FakeBucket", name: str):
        self.bucket = bucket
        self.name = name

    def upload_from_filename(self, filename, content_type=None, predefined_acl=None):
        if self.bucket.fail_uploads:
            raise ConnectionError("simulated transport failure")
        with open(filename, "rb") as f:
            data = f.read()
        self.bucket.objects[self.name] = {
            "data": data,
            "content_type": content_type,
            "acl": predefined_acl,
        }

    def delete(self):
        if self.name not in self.bucket.objects:
            raise NotFound(f"No such object: {self.bucket.name}/{self.name}")
        del self.bucket.objects[self.name]

    def generate_signed_url(self, **kwargs):
        self.bucket.signed.append((self.name, kwargs))
        return f"https://storage.googleapis.com/{self.bucket.name}/{self.name}?X-Goog-Signature=fake"


class FakeBucket:
    def __init__(self, name: str):
        self.name = name
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.signed: List[Any] = []
        self.fail_uploads = False

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self, name)


class FakeGCSClient:
    def __init__(self):
        self.buckets: Dict[str, FakeBucket] = {}

    def bucket(self, name: str) -> FakeBucket:
        return self.buckets.setdefault(name, FakeBucket(name))


# ---------------------------------------------------------------------
# Fake cloudinary.uploader
# ---------------------------------------------------------------------

class FakeUploader:
    def __init__(self, public_id: Optional[str] = "abc123", fail: bool = False, destroy_result: str = "ok"):
        self.public_id = public_id
        self.fail = fail
        self.destroy_result = destroy_result
        self.uploads: List[Dict[str, Any]] = []
        self.destroyed: List[Dict[str, Any]] = []

    def upload(self, file, **options):
        with open(file, "rb") as f:
            data = f.read()
        self.uploads.append({"file": file, "data": data, "options": options})
        if self.fail:
            raise ConnectionError("simulated transport failure")
        if self.public_id is None:
            return {"secure_url": "https://example.invalid/x"}
        folder = options.get("folder")
        return {"public_id": f"{folder}/{self.public_id}" if folder else self.public_id}

    def destroy(self, public_id, **options):
        self.destroyed.append({"public_id": public_id, "options": options})
        return {"result": self.destroy_result}


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------

@pytest.fixture
def staging_dir(tmp_path):
    d = tmp_path / "staging"
    d.mkdir()
    return str(d)


@pytest.fixture
def fake_gcs():
    return FakeGCSClient()


@pytest.fixture
def fake_uploader():
    return FakeUploader()


@pytest.fixture
def make_uploader():
    return FakeUploader


@pytest.fixture(scope="session")
def rsa_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def service_account(rsa_pem) -> ServiceAccount:
    return ServiceAccount(
        client_email="uploader@demo-project.iam.gserviceaccount.com",
        private_key=rsa_pem,
        project_id="demo-project",
    )


@pytest.fixture
def write_file(tmp_path):
    def _write(name: str, data: bytes) -> str:
        path = tmp_path / "src" / name
        os.makedirs(path.parent, exist_ok=True)
        path.write_bytes(data)
        return str(path)

    return _write
