import os

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from issue_reporter.uploads import get_upload_dir

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("/{filename}")
async def get_upload(filename: str, upload_dir: str = Depends(get_upload_dir)):
    """Serve a stored attachment by its stored file name."""
    path = os.path.join(upload_dir, filename)

    if filename != os.path.basename(filename) or filename in (".", "..") or not os.path.isfile(path):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="File not found"
        )

    return FileResponse(path)
