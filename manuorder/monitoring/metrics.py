# manuorder/monitoring/metrics.py

from prometheus_client import Counter, Info, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
import logging

from ..core.config import settings

logger = logging.getLogger(__name__)

# Create a custom registry for our metrics
registry = CollectorRegistry()

orders_created = Counter(
    'orders_created_total',
    'Total orders created',
    registry=registry
)

order_number_retries = Counter(
    'order_number_retries_total',
    'Order creations retried after an order number collision',
    registry=registry
)

quotations_created = Counter(
    'quotations_created_total',
    'Total quotations issued',
    ['currency'],
    registry=registry
)

quotation_responses = Counter(
    'quotation_responses_total',
    'Customer answers to quotations',
    ['outcome'],
    registry=registry
)

status_transitions = Counter(
    'order_status_transitions_total',
    'Order status changes',
    ['from_status', 'to_status'],
    registry=registry
)

uploads = Counter(
    'uploads_total',
    'Stored design files by backend',
    ['backend'],
    registry=registry
)

app_info = Info(
    'app_info',
    'Application information',
    registry=registry
)

app_info.info({
    'version': settings.API_VERSION,
    'service': 'manuorder',
})


def record_transition(from_status, to_status) -> None:
    status_transitions.labels(
        from_status=getattr(from_status, "value", str(from_status)),
        to_status=getattr(to_status, "value", str(to_status)),
    ).inc()


def generate_metrics_response() -> bytes:
    return generate_latest(registry)


METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST
