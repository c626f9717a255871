# fabquote/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- QUOTATIONS ----------------
    QUOTATION_NOT_FOUND = "QUOTATION_NOT_FOUND"
    QUOTATION_INVALID_STATE = "QUOTATION_INVALID_STATE"
    QUOTATION_INVALID_TRANSITION = "QUOTATION_INVALID_TRANSITION"
    QUOTATION_VERSION_CONFLICT = "QUOTATION_VERSION_CONFLICT"
    QUOTATION_INVALID_TYPE = "QUOTATION_INVALID_TYPE"
    QUOTATION_INVALID_CONFIG = "QUOTATION_INVALID_CONFIG"
    QUOTATION_FILE_MISSING = "QUOTATION_FILE_MISSING"
    QUOTATION_PRICE_MISSING = "QUOTATION_PRICE_MISSING"

    # ---------------- PAYMENTS ----------------
    PAYMENT_CONFLICT = "PAYMENT_CONFLICT"
    PAYMENT_NOT_VERIFIED = "PAYMENT_NOT_VERIFIED"
    PAYMENT_RECORD_FAILED = "PAYMENT_RECORD_FAILED"

    # ---------------- FILES ----------------
    FILE_INVALID_TYPE = "FILE_INVALID_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_LINK_INVALID = "FILE_LINK_INVALID"

    # ---------------- PROFILES ----------------
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    PROFILE_PHONE_MISSING = "PROFILE_PHONE_MISSING"

    # ---------------- DEPENDENCIES ----------------
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    OBJECT_STORE_UNAVAILABLE = "OBJECT_STORE_UNAVAILABLE"
    PAYMENT_GATEWAY_UNAVAILABLE = "PAYMENT_GATEWAY_UNAVAILABLE"
