from pathlib import Path

# Project root: .../backend
BACKEND_ROOT = Path(__file__).resolve().parents[1]
PROJECT_ROOT = BACKEND_ROOT.parent

DATA_DIR = PROJECT_ROOT / "data"
INDEX_DIR = DATA_DIR / "index"

# Single storage unit: postings, documents and the resume cursor
DB_PATH = INDEX_DIR / "comic_index.db"
AUDIT_LOG_PATH = DATA_DIR / "comic_log.txt"

SOURCE_BASE_URL = "https://xkcd.com/"
USER_AGENT = "comicindex/0.1"
FETCH_TIMEOUT_S = 15

# xkcd never published a comic 404
RESERVED_IDS = frozenset({404})

# Bytes per packed document ID (big-endian unsigned)
ID_WIDTH = 4

# Query terms are looked up verbatim unless this is switched on
NORMALIZE_QUERY_TERMS = False

DEFAULT_LOG_LEVEL = "INFO"
