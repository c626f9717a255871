# fabquote/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    SUBMIT_QUOTATION = "SUBMIT_QUOTATION"
    UPDATE_QUOTATION = "UPDATE_QUOTATION"
    CONFIRM_PAYMENT = "CONFIRM_PAYMENT"
    CANCEL_QUOTATION = "CANCEL_QUOTATION"
