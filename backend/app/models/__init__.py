from backend.app.models.user import User  # noqa: F401
from backend.app.models.property import Property  # noqa: F401
from backend.app.models.invoice import Invoice  # noqa: F401
from backend.app.models.invoice_payment import InvoicePayment  # noqa: F401
from backend.app.models.recurring_invoice import RecurringInvoice  # noqa: F401
from backend.app.models.recurring_invoice_split import RecurringInvoiceSplit  # noqa: F401
