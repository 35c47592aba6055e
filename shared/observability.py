"""
Observability Layer
Structured logging, Prometheus metrics, and request tracing
"""
import logging
from contextvars import ContextVar

import structlog
from prometheus_client import Counter
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

# Context var for request tracing
request_id_ctx: ContextVar[str] = ContextVar('request_id', default='')

# =============================================================================
# PROMETHEUS METRICS
# =============================================================================

events_published_total = Counter(
    'events_published_total',
    'Events published to Kafka',
    ['topic', 'status']
)
events_consumed_total = Counter(
    'events_consumed_total',
    'Events taken off a Kafka topic',
    ['topic', 'outcome']
)
news_cache_lookups_total = Counter(
    'news_cache_lookups_total',
    'News read-through cache lookups',
    ['result']
)

# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(log_level: str = "INFO"):
    """Setup structured logging with structlog"""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def log_startup_info(settings):
    """Log startup information"""
    logger = structlog.get_logger(__name__)
    logger.info(
        "service_starting",
        service=settings.SERVICE_NAME,
        version=settings.VERSION,
        port=settings.PORT,
        kafka=getattr(settings, "KAFKA_BOOTSTRAP_SERVERS", None),
    )


# =============================================================================
# REQUEST TRACING
# =============================================================================

def generate_request_id() -> str:
    """Generate ULID for request tracking"""
    return str(ULID())


def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_ctx.get()

