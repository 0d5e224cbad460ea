import io

import pytest
from werkzeug.datastructures import FileStorage

from extensions import mail
from utils import dropbox_service
from utils.email import send_password_reset_email
from utils.errors import UpstreamError, ValidationError


def cover(filename, size=16):
    return FileStorage(stream=io.BytesIO(b"x" * size), filename=filename)


def test_cover_image_must_be_an_image(app):
    with pytest.raises(ValidationError):
        dropbox_service.upload_cover_image(cover("notes.pdf"), "owner")


def test_cover_image_size_limit(app):
    app.config["COVER_IMAGE_MAX_BYTES"] = 8
    with pytest.raises(ValidationError) as excinfo:
        dropbox_service.upload_cover_image(cover("big.png", size=9), "owner")
    assert excinfo.value.message == "Cover image is too large"


def test_cover_image_goes_under_owner_folder(app, monkeypatch):
    calls = []
    monkeypatch.setattr(dropbox_service, "upload_file",
                        lambda file, filename, folder: calls.append((file.read(), filename, folder)) or ("url", "path"))

    assert dropbox_service.upload_cover_image(cover("photo.JPG", size=4), "owner") == ("url", "path")
    content, filename, folder = calls[0]
    assert content == b"xxxx"
    assert filename.endswith(".jpg")
    assert folder == "course-covers/owner"


def test_storage_requires_credentials(app):
    app.config["DROPBOX_REFRESH_TOKEN"] = None
    with pytest.raises(UpstreamError):
        dropbox_service.get_client()


def test_delete_refuses_paths_outside_root(app):
    assert dropbox_service.delete_file_from_dropbox("/elsewhere/file.png") is False
    assert dropbox_service.delete_file_from_dropbox(None) is False


def test_password_reset_email_links_to_frontend(app):
    app.config["FRONTEND_URL"] = "https://learn.example.com/"
    with mail.record_messages() as outbox:
        assert send_password_reset_email("ada@example.com", "abc.def") is True

    assert len(outbox) == 1
    assert outbox[0].recipients == ["ada@example.com"]
    assert "https://learn.example.com/reset-password?token=abc.def" in outbox[0].body
