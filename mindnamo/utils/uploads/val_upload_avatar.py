from pathlib import Path
from fastapi import UploadFile

from mindnamo.core.errors import ValidationFailed
from mindnamo.services.S3Service import S3Storage

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB


async def validate_and_upload_avatar(file: UploadFile, owner: str, storage: S3Storage) -> str:
    """
    Validate and upload avatar
    Returns the public URL
    """
    file_ext = Path(file.filename or "").suffix.lower()
    if file_ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationFailed(
            f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}"
        )

    content = await file.read()
    if len(content) > MAX_IMAGE_SIZE:
        raise ValidationFailed("File too large. Maximum size: 5MB")

    await file.seek(0)
    return storage.upload(file, folder="uploads/avatars", owner=owner)
