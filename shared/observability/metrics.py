from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total",
    "Total checkouts processed",
    ["status"]  # Labels: 'success', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds",
    "Checkout duration in seconds"
)

ecomm_order_cancellations_total = Counter(
    "ecomm_order_cancellations_total",
    "Orders cancelled with stock restored",
    ["actor"]  # Labels: 'owner', 'admin'
)

ecomm_order_status_transitions_total = Counter(
    "ecomm_order_status_transitions_total",
    "Order status transitions applied",
    ["to_status"]
)

ecomm_payment_webhooks_total = Counter(
    "ecomm_payment_webhooks_total",
    "Payment gateway webhook events received",
    ["event_type"]
)

ecomm_email_dispatch_total = Counter(
    "ecomm_email_dispatch_total",
    "Outbox e-mail delivery attempts",
    ["status"]  # Labels: 'sent', 'retry', 'failed'
)
