from prometheus_client import Counter, Histogram

# -------------------------
# Scan metrics
# -------------------------

SCAN_REQUESTS_TOTAL = Counter(
    "scan_requests_total",
    "Total label scan requests by outcome",
    ["result"],
)

SCAN_VERDICTS_TOTAL = Counter(
    "scan_verdicts_total",
    "Completed scans by verdict (safe/unsafe/unclear)",
    ["verdict"],
)

SCAN_CAUTION_FINDINGS_TOTAL = Counter(
    "scan_caution_findings_total",
    "Caution findings added from the cross-reactivity table",
)

# -------------------------
# VLM metrics
# -------------------------

VLM_REQUESTS_TOTAL = Counter(
    "vlm_requests_total",
    "Total VLM requests",
    ["result", "model"],
)

VLM_INFERENCE_SECONDS = Histogram(
    "vlm_inference_seconds",
    "VLM inference latency in seconds",
    ["model"],
)
