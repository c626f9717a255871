from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse

from fabquote.constants.error_codes import ErrorCode
from fabquote.core.exceptions import AuthorizationError, NotFoundError
from fabquote.core.identity import Principal
from fabquote.core.security import decode_download_token
from fabquote.utils.get_user import get_current_principal
from fabquote.utils.response import success_response, APIResponse
from fabquote.services.storage.file_service import read_capped_upload, upload_design_file
from fabquote.services.storage.object_store import LocalObjectStore, ObjectStore, get_object_store

router = APIRouter(
    prefix="/files",
    tags=["Files"],
)


@router.post(
    "/designs",
    response_model=APIResponse[dict],
)
async def upload_design_api(
    type: str = Form(..., description="PCB or Assembly"),
    file: UploadFile = File(...),
    store: ObjectStore = Depends(get_object_store),
    principal: Principal = Depends(get_current_principal),
):
    content = await read_capped_upload(file, type)
    key = await upload_design_file(store, principal, type, file.filename or "", content)
    return success_response("File uploaded", {"file_path": key})


@router.get("/download")
async def download_api(
    token: str = Query(...),
    store: ObjectStore = Depends(get_object_store),
):
    # only the local backend serves bytes itself, remote stores sign their own URLs
    if not isinstance(store, LocalObjectStore):
        raise NotFoundError("Not found")

    path = decode_download_token(token)
    if not path:
        raise AuthorizationError("Download link is invalid or has expired", ErrorCode.FILE_LINK_INVALID)

    if not await store.exists(path):
        raise NotFoundError("File not found", ErrorCode.FILE_NOT_FOUND)

    target = store.resolve(path)
    return FileResponse(target, filename=target.name.split("-", 1)[-1])
