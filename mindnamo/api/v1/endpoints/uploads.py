from fastapi import APIRouter, Depends, File, UploadFile

from mindnamo.core.security import require_active_admin
from mindnamo.models.account import Account
from mindnamo.services.S3Service import S3Storage, get_storage
from mindnamo.utils.uploads.val_upload_avatar import validate_and_upload_avatar

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/avatar")
async def upload_avatar(
    file: UploadFile = File(...),
    current_admin: Account = Depends(require_active_admin),
    storage: S3Storage = Depends(get_storage)
):
    """Upload a profile photo; the returned URL is what the setup profile step accepts."""
    url = await validate_and_upload_avatar(file, current_admin.account_id, storage)
    return {"success": True, "url": url}
