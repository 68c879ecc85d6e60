"""Tests for fileupload models."""
import pytest

from fileupload.errors import InvalidTransition
from fileupload.models import (
    CredentialsConfiguration,
    FileUploadRecord,
    PresignedUrlConfiguration,
    SourceFile,
    StorageCredentials,
    StorageService,
    UploadStatus,
)


def _record(key="zod/20260101T000000.000000Z-photo.png"):
    return FileUploadRecord(key=key, file=SourceFile("photo.png", b"png", "image/png"))


class TestUploadStatus:
    def test_forward_transitions(self):
        assert UploadStatus.INITIAL.can_move_to(UploadStatus.LOADING)
        assert UploadStatus.LOADING.can_move_to(UploadStatus.SUCCESS)
        assert UploadStatus.LOADING.can_move_to(UploadStatus.ERROR)

    def test_no_skipping_or_going_back(self):
        assert not UploadStatus.INITIAL.can_move_to(UploadStatus.SUCCESS)
        assert not UploadStatus.LOADING.can_move_to(UploadStatus.INITIAL)
        assert not UploadStatus.SUCCESS.can_move_to(UploadStatus.ERROR)
        assert not UploadStatus.ERROR.can_move_to(UploadStatus.LOADING)

    def test_terminal(self):
        assert UploadStatus.SUCCESS.is_terminal
        assert UploadStatus.ERROR.is_terminal
        assert not UploadStatus.LOADING.is_terminal


class TestFileUploadRecord:
    def test_seeded_initial(self):
        record = _record()
        assert record.status == UploadStatus.INITIAL
        assert record.remote_url is None
        assert record.dimensions is None
        assert record.error_message is None

    def test_success_path(self):
        record = _record().loading().succeed("https://cdn.example/photo.png")
        assert record.success is True
        assert record.remote_url == "https://cdn.example/photo.png"
        assert record.error_message is None

    def test_error_path(self):
        record = _record().loading().fail("S3 upload error: boom")
        assert record.status == UploadStatus.ERROR
        assert record.error_message == "S3 upload error: boom"
        assert record.remote_url is None

    def test_cannot_skip_loading(self):
        with pytest.raises(InvalidTransition):
            _record().succeed("https://cdn.example/photo.png")

    def test_terminal_records_stay_terminal(self):
        failed = _record().loading().fail("nope")
        with pytest.raises(InvalidTransition):
            failed.loading()
        with pytest.raises(InvalidTransition):
            failed.succeed("https://cdn.example/photo.png")

    def test_success_requires_url(self):
        with pytest.raises(ValueError):
            _record().loading().succeed("")

    def test_error_requires_message(self):
        with pytest.raises(ValueError):
            _record().loading().fail("")

    def test_dimensions_only_after_success(self):
        with pytest.raises(InvalidTransition):
            _record().loading().with_dimensions((10, 20))

        record = _record().loading().succeed("https://cdn.example/photo.png").with_dimensions((640, 480))
        assert record.dimensions == (640, 480)
        assert record.status == UploadStatus.SUCCESS

    def test_immutable(self):
        record = _record()
        with pytest.raises(Exception):
            record.status = UploadStatus.SUCCESS


class TestSourceFile:
    def test_size_and_image(self):
        f = SourceFile("photo.png", b"12345", "image/png")
        assert f.size == 5
        assert f.is_image is True
        assert SourceFile("notes.txt", b"", "text/plain").is_image is False

    def test_from_path_guesses_type(self, tmp_path):
        path = tmp_path / "photo.png"
        path.write_bytes(b"fake png")

        f = SourceFile.from_path(path)

        assert f.name == "photo.png"
        assert f.data == b"fake png"
        assert f.content_type == "image/png"

    def test_from_path_unknown_type(self, tmp_path):
        path = tmp_path / "blob.zzzunknown"
        path.write_bytes(b"x")
        assert SourceFile.from_path(path).content_type == "application/octet-stream"

    def test_repr_omits_bytes(self):
        assert "size=3" in repr(SourceFile("a.bin", b"abc"))


class TestConfiguration:
    def test_services(self):
        assert PresignedUrlConfiguration("https://proxy.example").service is StorageService.PRESIGNED_URL
        assert CredentialsConfiguration(bucket="att").service is StorageService.CREDENTIALS

    def test_credentials_complete(self):
        assert StorageCredentials("id", "secret", "s3.example.com").is_complete
        assert not StorageCredentials("id", "", "s3.example.com").is_complete
        assert not StorageCredentials("", "secret", "s3.example.com").is_complete
        assert not StorageCredentials("id", "secret", "").is_complete

    def test_credentials_equality(self):
        assert StorageCredentials("id", "s", "e") == StorageCredentials("id", "s", "e")
        assert StorageCredentials("id", "s", "e") != StorageCredentials("id", "s2", "e")

    def test_credentials_repr_hides_secret(self):
        assert "hunter2" not in repr(StorageCredentials("id", "hunter2", "e"))
