# services/importer/metrics.py
from prometheus_client import Counter, Histogram

FETCH_REQUESTS = Counter('importer_fetch_requests_total', 'Resource fetches that hit the network or disk')
FETCH_ERRORS = Counter('importer_fetch_errors_total', 'Resource fetches that returned nothing')
FETCH_CACHE_HITS = Counter('importer_fetch_cache_hits_total', 'Resource fetches served from the run memo')

ASSETS_CREATED = Counter('importer_assets_created_total', 'Media assets created')
TERMS_CREATED = Counter('importer_terms_created_total', 'Taxonomy terms created')
RECORDS_CREATED = Counter('importer_records_created_total', 'Content records created')
RECORD_FAILURES = Counter('importer_record_failures_total', 'Content record creations that failed')

IMPORT_DURATION = Histogram('importer_run_duration_seconds', 'Time spent on a single import run')
