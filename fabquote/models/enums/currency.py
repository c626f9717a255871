# fabquote/models/enums/currency.py
import enum


class Currency(str, enum.Enum):
    INR = "INR"
    USD = "USD"


CURRENCY_SYMBOLS = {
    Currency.INR: "₹",
    Currency.USD: "$",
}
