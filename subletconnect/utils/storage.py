import uuid

from google.cloud import storage as gcs_storage

from subletconnect.config import get_settings
from subletconnect.errors import InvalidImage, ServiceUnavailable

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


def get_storage_client():
    return gcs_storage.Client(project=get_settings().GCP_PROJECT_ID or None)


def get_bucket():
    settings = get_settings()
    if not settings.GCS_BUCKET_NAME:
        raise ServiceUnavailable("Image storage is not configured (GCS_BUCKET_NAME).")
    client = get_storage_client()
    return client.bucket(settings.GCS_BUCKET_NAME)


def validate_image(file_bytes: bytes, content_type: str | None, max_mb: int) -> str:
    """Check MIME type and size of an uploaded image. Returns the MIME type."""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidImage(
            f"Invalid image type. Allowed types: {', '.join(ALLOWED_IMAGE_TYPES)}"
        )
    if not file_bytes:
        raise InvalidImage("Image file is empty.")
    if len(file_bytes) > max_mb * 1024 * 1024:
        raise InvalidImage(f"Image too large. Maximum size is {max_mb}MB")
    return content_type


def image_object_path(prefix: str, owner_id, content_type: str) -> str:
    """``<prefix>/<owner id>/<random hex>.<ext>``, extension from the MIME type."""
    ext = content_type.split("/", 1)[1]
    return f"{prefix}/{owner_id}/{uuid.uuid4().hex}.{ext}"


def upload_file(path: str, file_bytes: bytes, content_type: str = "application/octet-stream") -> str:
    """Upload file to the GCS bucket. Returns the object's public URL."""
    bucket = get_bucket()
    blob = bucket.blob(path)
    blob.upload_from_string(file_bytes, content_type=content_type)
    return f"https://storage.googleapis.com/{bucket.name}/{path}"
