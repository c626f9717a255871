# fabquote/utils/response.py

from typing import TypeVar, Generic, Optional, Dict, Any
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from fabquote.constants.error_codes import ErrorCode

T = TypeVar("T")


def success_response(message: str, data: Optional[T] = None) -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
    }


def error_response(message: str, error_code: ErrorCode, details: Any = None) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error_code": error_code.value,
        "details": jsonable_encoder(details),
    }


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None

