# fabquote/models/enums/quotation_type.py
import enum


class QuotationType(str, enum.Enum):
    pcb = "PCB"
    assembly = "Assembly"
