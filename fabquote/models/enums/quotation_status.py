# fabquote/models/enums/quotation_status.py
import enum


class QuotationStatus(str, enum.Enum):
    pending_review = "Pending Review"
    quoted = "Quoted"
    paid = "Paid"
    in_production = "In Production"
    shipped = "Shipped"
    delivered = "Delivered"
