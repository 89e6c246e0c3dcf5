from .setup import setup_observability
from .metrics import (
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_order_cancellations_total,
    ecomm_order_status_transitions_total,
    ecomm_payment_webhooks_total,
    ecomm_email_dispatch_total,
)
