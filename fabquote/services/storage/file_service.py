import logging
import re
import time
from pathlib import PurePosixPath

from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.config import SIGNED_URL_TTL_SECONDS
from fabquote.core.exceptions import DependencyError, NotFoundError, ValidationError
from fabquote.core.identity import Principal
from fabquote.constants.error_codes import ErrorCode
from fabquote.constants.file_rules import UPLOAD_RULES
from fabquote.schemas.quotes.quotation_schemas import FileUrlOut
from fabquote.services.quotes.quotation_queries import get_scoped_quotation
from fabquote.services.quotes.quotation_transitions import parse_type
from fabquote.services.storage.object_store import ObjectStore, ObjectStoreError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

CONTENT_TYPES = {
    ".zip": "application/zip",
    ".csv": "text/csv",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
}


def safe_filename(filename: str) -> str:
    name = PurePosixPath(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "upload"


def build_object_key(user_id: str, filename: str) -> str:
    return f"{user_id}/{int(time.time() * 1000)}-{safe_filename(filename)}"


def check_upload(quotation_type, filename: str, size: int) -> str:
    """Format and size checks only. Returns the lower-cased extension."""
    rules = UPLOAD_RULES[quotation_type]
    extension = PurePosixPath(filename.lower()).suffix

    if extension not in rules["extensions"]:
        raise ValidationError(
            f"Invalid file type. Please upload {rules['label']}.",
            ErrorCode.FILE_INVALID_TYPE,
        )

    if size == 0:
        raise ValidationError("Uploaded file is empty", ErrorCode.VALIDATION_ERROR)

    if size > rules["max_bytes"]:
        raise ValidationError(
            f"File size exceeds {rules['max_bytes'] // (1024 * 1024)}MB limit.",
            ErrorCode.FILE_TOO_LARGE,
        )

    return extension


UPLOAD_CHUNK_BYTES = 1024 * 1024


async def read_capped_upload(upload, quotation_type: str) -> bytes:
    """Read an UploadFile, giving up as soon as it passes the size cap for its type."""
    qtype = parse_type(quotation_type)
    filename = upload.filename or ""
    limit = UPLOAD_RULES[qtype]["max_bytes"]

    if upload.size is not None and upload.size > limit:
        check_upload(qtype, filename, upload.size)

    chunks = []
    received = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        received += len(chunk)
        if received > limit:
            check_upload(qtype, filename, received)
        chunks.append(chunk)

    return b"".join(chunks)


async def upload_design_file(
    store: ObjectStore,
    principal: Principal,
    quotation_type: str,
    filename: str,
    content: bytes,
) -> str:
    qtype = parse_type(quotation_type)
    extension = check_upload(qtype, filename or "", len(content))

    key = build_object_key(principal.user_id, filename)

    try:
        await store.put(key, content, CONTENT_TYPES.get(extension, "application/octet-stream"))
    except ObjectStoreError as e:
        logger.error("Upload failed", extra={"file_path": key, "error": str(e)})
        raise DependencyError(
            "Failed to upload file. Please try again.",
            ErrorCode.OBJECT_STORE_UNAVAILABLE,
        )

    logger.info("Design file uploaded", extra={"file_path": key, "bytes": len(content)})
    return key


async def get_download_url(
    db: AsyncSession,
    store: ObjectStore,
    principal: Principal,
    quotation_id: str,
) -> FileUrlOut:
    q = await get_scoped_quotation(db, principal, quotation_id)

    if not q.file_path:
        raise NotFoundError("File path is missing for this entry.", ErrorCode.FILE_NOT_FOUND)

    try:
        url = await store.signed_url(q.file_path, SIGNED_URL_TTL_SECONDS)
    except ObjectStoreError as e:
        logger.error("Failed to get download link", extra={"quotation_id": quotation_id, "error": str(e)})
        raise DependencyError(
            "Failed to get download link",
            ErrorCode.OBJECT_STORE_UNAVAILABLE,
        )

    return FileUrlOut(url=url, expires_in=SIGNED_URL_TTL_SECONDS)
