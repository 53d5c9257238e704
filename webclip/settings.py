"""Project-wide settings for webclip.

Extraction weights and thresholds are empirically tuned: changing any of the
locator constants changes which element is picked as main content, so treat
an edit here as a behaviour change, not a refactor.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Sentinel defaults
# ---------------------------------------------------------------------------
UNTITLED = "無題"
UNKNOWN_AUTHOR = "不明"

# ---------------------------------------------------------------------------
# Heuristic content locator
# ---------------------------------------------------------------------------
# Step 1: a landmark candidate wins outright above this many characters
LANDMARK_MIN_CHARS = 500

# Step 2: scoring weights
SCORE_CHARS_PER_POINT = 100
SCORE_PER_PARAGRAPH = 3
SCORE_LINK_DENSITY_PENALTY = 50
SCORE_POSITIVE_KEYWORD = 20
SCORE_NEGATIVE_KEYWORD = 30

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
# Content shorter than this is flagged as suspect (never rejected)
MIN_CONTENT_CHARS = 100

# Body text cap; None keeps the full text
MAX_CONTENT_CHARS: int | None = None

# Parsed dates outside this range are treated as parse failures
DATE_MIN_YEAR = 1990
DATE_MAX_YEAR = 2099

# ---------------------------------------------------------------------------
# Messaging / network
# ---------------------------------------------------------------------------
MESSAGE_TIMEOUT = 5.0  # seconds to wait for a content-script reply
FETCH_TIMEOUT = 30
FETCH_MAX_RETRIES = 3

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Batch processing
# ---------------------------------------------------------------------------
BATCH_START_ROW = 3  # row 1 is the sheet title, row 2 the headers
BATCH_ROW_DELAY = 1.0  # seconds between rows, keeps API quotas happy
DOCS_BATCH_CHUNK_SIZE = 50

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
