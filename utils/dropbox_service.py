import logging
import os

import dropbox
from dropbox.exceptions import ApiError
from flask import current_app
from werkzeug.utils import secure_filename

from utils.errors import UpstreamError, ValidationError
from utils.helpers import new_uuid

logger = logging.getLogger(__name__)


def get_client():
    """Build a Dropbox client from app config; it refreshes its own access token."""
    config = current_app.config
    if not all([config.get("DROPBOX_APP_KEY"), config.get("DROPBOX_APP_SECRET"), config.get("DROPBOX_REFRESH_TOKEN")]):
        raise UpstreamError("File storage is not configured")

    return dropbox.Dropbox(
        oauth2_refresh_token=config["DROPBOX_REFRESH_TOKEN"],
        app_key=config["DROPBOX_APP_KEY"],
        app_secret=config["DROPBOX_APP_SECRET"],
        timeout=30,
    )


def _root():
    return current_app.config["DROPBOX_ROOT_FOLDER"].rstrip("/")


def upload_file(file, filename, folder):
    dropbox_path = f"{_root()}/{folder}/{filename}"
    dbx = get_client()

    try:
        dbx.files_upload(file.read(), dropbox_path, mode=dropbox.files.WriteMode("overwrite"))

        shared_link = None
        try:
            existing_links = dbx.sharing_list_shared_links(path=dropbox_path).links
            if existing_links:
                shared_link = existing_links[0]
        except ApiError as e:
            logger.warning("Could not list shared links for %s: %s", dropbox_path, e)

        if not shared_link:
            shared_link = dbx.sharing_create_shared_link_with_settings(dropbox_path)
    except ApiError as e:
        logger.error("Dropbox upload of %s failed: %s", dropbox_path, e)
        raise UpstreamError("File upload failed")

    public_url = shared_link.url.replace("?dl=0", "?raw=1")
    return public_url, dropbox_path


def upload_cover_image(file, course_owner_id):
    """Validate and store a course cover image; returns (public_url, dropbox_path)."""
    filename = secure_filename(file.filename or "")
    extension = os.path.splitext(filename)[1].lower().lstrip(".")
    if extension not in current_app.config["ALLOWED_IMAGE_EXTENSIONS"]:
        raise ValidationError("Cover image must be an image file")

    data = file.read()
    if len(data) > current_app.config["COVER_IMAGE_MAX_BYTES"]:
        raise ValidationError("Cover image is too large")
    file.seek(0)

    return upload_file(file, f"{new_uuid()}.{extension}", folder=f"course-covers/{course_owner_id}")


def delete_file_from_dropbox(dropbox_path):
    if not dropbox_path or not dropbox_path.startswith(f"{_root()}/"):
        logger.warning("Refusing to delete Dropbox path outside storage root: %s", dropbox_path)
        return False

    try:
        get_client().files_delete_v2(dropbox_path)
    except (ApiError, UpstreamError) as e:
        logger.error("Dropbox delete of %s failed: %s", dropbox_path, e)
        return False

    logger.info("File deleted from Dropbox: %s", dropbox_path)
    return True
