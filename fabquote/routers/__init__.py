# fabquote/routers/__init__.py

from .quotes.quotation_router import router as quotation_router
from .quotes.payment_router import router as payment_router

from .files.file_router import router as file_router

from .accounts.profile_router import router as profile_router

from .support.contact_router import router as contact_router
from .support.activity_router import router as activity_router


__all__ = [
"quotation_router",
"payment_router",

"file_router",

"profile_router",

"contact_router",
"activity_router",
]
