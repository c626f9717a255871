# fabquote/constants/file_rules.py

from fabquote.models.enums.quotation_type import QuotationType

MB = 1024 * 1024

# Accepted upload formats and size caps per quotation type
UPLOAD_RULES = {
    QuotationType.pcb: {
        "extensions": {".zip"},
        "max_bytes": 50 * MB,
        "label": "a .zip file",
    },
    QuotationType.assembly: {
        "extensions": {".csv", ".xlsx", ".xls"},
        "max_bytes": 10 * MB,
        "label": "a CSV or Excel (.xlsx, .xls) file",
    },
}
