"""
Prometheus metrics for the alt-text generator.

Metrics are organized by category:
- API metrics (request rate, latency, payload sizes)
- Generation metrics (per-provider outcomes, latency, rate-limit retries)
- Image metrics (resizes, SVG shortcuts)
- Persistence metrics (bulk save outcomes)
"""
from prometheus_client import Counter, Histogram

# ============================================================================
# API Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0]
)

http_request_size_bytes = Histogram(
    'http_request_size_bytes',
    'HTTP request size in bytes',
    ['method', 'endpoint'],
    buckets=[100, 500, 1000, 5000, 10000, 50000, 100000, 500000, 1000000]
)

http_response_size_bytes = Histogram(
    'http_response_size_bytes',
    'HTTP response size in bytes',
    ['method', 'endpoint'],
    buckets=[100, 500, 1000, 5000, 10000, 50000, 100000, 500000, 1000000]
)

# ============================================================================
# Generation Metrics
# ============================================================================

alt_text_generations_total = Counter(
    'alt_text_generations_total',
    'Total number of alt-text generation attempts',
    ['provider', 'status']
)

alt_text_generation_duration_seconds = Histogram(
    'alt_text_generation_duration_seconds',
    'Time spent in a single vision backend call, including retries',
    ['provider'],
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0, 240.0]
)

provider_rate_limit_retries_total = Counter(
    'provider_rate_limit_retries_total',
    'Number of retries caused by vision backend rate limiting',
    ['provider']
)

# ============================================================================
# Image Metrics
# ============================================================================

images_resized_total = Counter(
    'images_resized_total',
    'Number of images re-encoded to fit backend payload limits'
)

svg_descriptions_total = Counter(
    'svg_descriptions_total',
    'Number of vector images described from their filename alone'
)

# ============================================================================
# Persistence Metrics
# ============================================================================

alt_text_saves_total = Counter(
    'alt_text_saves_total',
    'Number of persisted alt-text updates',
    ['collection', 'status']
)
