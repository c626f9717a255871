# Quotations
from fabquote.models.quotes.quotation_models import Quotation

# Accounts
from fabquote.models.accounts.profile_models import Profile

# Support
from fabquote.models.support.contact_models import ContactSubmission
from fabquote.models.support.activity_models import QuotationActivity
