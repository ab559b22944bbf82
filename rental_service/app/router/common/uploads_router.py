from typing import List
from fastapi import APIRouter, Depends, File, UploadFile, status

from shared.core.auth import validate_current_token
from shared.core.schemas import JsonOutResult, UserToken
from shared.helpers.json_response_helper import success_response
from shared.helpers.upload_helper import save_uploads
from shared.utils.app_status_code import AppStatusCode

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.post("", response_model=JsonOutResult[List[str]], status_code=status.HTTP_201_CREATED)
def upload_files(
    files: List[UploadFile] = File(...),
    current_user: UserToken = Depends(validate_current_token)
):
    urls = save_uploads(files, folder=str(current_user.user_id))
    return success_response(data=urls, message="Files uploaded",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)
