"""Uploads of resumes, avatars and logos to Supabase Storage."""
import logging
import time

import requests
from werkzeug.utils import secure_filename

from api_client import ErrorKind

logger = logging.getLogger(__name__)

RESUME_EXTENSIONS = {"pdf", "doc", "docx"}
IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

AVATAR_BUCKET = "avatars"
RESUME_BUCKET = "resumes"


class UploadError(Exception):
    kind = ErrorKind.UPLOAD

    def __init__(self, message):
        super().__init__(message)
        self.message = message


def allowed_file(filename, extensions):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in extensions


def is_image(file):
    mimetype = getattr(file, "mimetype", "") or ""
    return mimetype.startswith("image/") or allowed_file(file.filename or "", IMAGE_EXTENSIONS)


class StorageClient:
    def __init__(self, url, key, timeout=30, session=None):
        self.url = (url or "").rstrip("/")
        self.key = key or ""
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self):
        return bool(self.url and self.key)

    def public_url(self, bucket, path):
        return f"{self.url}/storage/v1/object/public/{bucket}/{path}"

    def upload(self, file):
        """Store a werkzeug FileStorage and return its public URL.

        Images land in the avatars bucket, everything else in resumes.
        """
        if not self.configured:
            raise UploadError("File storage is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)")

        filename = secure_filename(file.filename or "")
        if not filename:
            raise UploadError("Uploaded file has no name")

        bucket = AVATAR_BUCKET if is_image(file) else RESUME_BUCKET
        path = f"{int(time.time() * 1000)}_{filename}"
        headers = {
            "Authorization": f"Bearer {self.key}",
            "apikey": self.key,
            "Content-Type": file.mimetype or "application/octet-stream",
        }

        try:
            response = self.session.post(
                f"{self.url}/storage/v1/object/{bucket}/{path}",
                data=file.stream.read(),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.warning("Upload of %s failed: %s", filename, exc)
            raise UploadError(f"Upload failed: {exc}")

        if not response.ok:
            logger.warning("Upload of %s rejected with HTTP %s", filename, response.status_code)
            raise UploadError(f"Upload failed: HTTP {response.status_code}")

        logger.info("Uploaded %s to %s", path, bucket)
        return self.public_url(bucket, path)

    def upload_optional(self, file):
        """Upload when a file was actually chosen, else return None."""
        if not file or not getattr(file, "filename", None):
            return None
        return self.upload(file)
