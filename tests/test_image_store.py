from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from accounts.errors import PersistenceError, ValidationError
from accounts.services.image_store import ImageUpload, LocalImageStore, SpacesImageStore


class RecordingS3Client:
    def __init__(self):
        self.calls = []

    def put_object(self, **kwargs):
        self.calls.append(kwargs)


def test_local_store_writes_file_with_original_extension(tmp_path):
    store = LocalImageStore(tmp_path)

    ref = store.save(ImageUpload(filename="Me.JPEG", content_type="image/jpeg", data=b"\xff\xd8"))

    assert ref.endswith(".jpeg")
    assert (tmp_path / ref.rsplit("/", 1)[-1]).read_bytes() == b"\xff\xd8"


@pytest.mark.parametrize("content_type", ["text/plain", "application/pdf", None])
def test_non_images_are_rejected(tmp_path, content_type):
    store = LocalImageStore(tmp_path)

    with pytest.raises(ValidationError) as excinfo:
        store.save(ImageUpload(filename="x.txt", content_type=content_type, data=b"x"))
    assert excinfo.value.code == "InvalidImage"
    assert list(tmp_path.iterdir()) == []


def test_empty_upload_is_rejected(tmp_path):
    with pytest.raises(ValidationError):
        LocalImageStore(tmp_path).save(ImageUpload(filename="x.png", content_type="image/png", data=b""))


def test_spaces_store_uploads_public_object():
    client = RecordingS3Client()
    store = SpacesImageStore(client=client, bucket="photos", cdn_url="https://cdn.example.com/", base_path="profiles")

    ref = store.save(ImageUpload(filename="me.png", content_type="image/png", data=b"\x89PNG"))

    call = client.calls[0]
    assert call["Bucket"] == "photos"
    assert call["Key"].startswith("profiles/")
    assert call["Key"].endswith(".png")
    assert call["ACL"] == "public-read"
    assert call["ContentType"] == "image/png"
    assert ref == f"https://cdn.example.com/{call['Key']}"


class FailingS3Client(RecordingS3Client):
    def put_object(self, **kwargs):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")

    def delete_object(self, **kwargs):
        self.calls.append(kwargs)


def test_local_write_failure_is_persistence_error(tmp_path, monkeypatch):
    def disk_full(self, data):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(Path, "write_bytes", disk_full)

    with pytest.raises(PersistenceError) as excinfo:
        LocalImageStore(tmp_path).save(ImageUpload(filename="me.png", content_type="image/png", data=b"\x89PNG"))
    assert "space" not in excinfo.value.message


def test_spaces_upload_failure_is_persistence_error():
    store = SpacesImageStore(client=FailingS3Client(), bucket="photos", cdn_url="https://cdn.example.com", base_path="profiles")

    with pytest.raises(PersistenceError):
        store.save(ImageUpload(filename="me.png", content_type="image/png", data=b"\x89PNG"))


def test_local_delete_removes_file(tmp_path):
    store = LocalImageStore(tmp_path)
    ref = store.save(ImageUpload(filename="me.png", content_type="image/png", data=b"\x89PNG"))

    store.delete(ref)
    store.delete(ref)

    assert list(tmp_path.iterdir()) == []


def test_spaces_delete_strips_cdn_prefix():
    client = FailingS3Client()
    store = SpacesImageStore(client=client, bucket="photos", cdn_url="https://cdn.example.com", base_path="profiles")

    store.delete("https://cdn.example.com/profiles/123.png")

    assert client.calls == [{"Bucket": "photos", "Key": "profiles/123.png"}]
