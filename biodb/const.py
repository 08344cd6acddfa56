import os

# Accession lookups with more keys than this go through a staging table.
LOOKUP_THRESHOLD = int(os.environ.get("BIODB_LOOKUP_THRESHOLD", 100))
if LOOKUP_THRESHOLD <= 0:
    err = "Environment variable BIODB_LOOKUP_THRESHOLD must be a positive integer."
    raise ValueError(err)

DEFAULT_PORT = os.environ.get("BIODB_PORT", "5432")
DEFAULT_DOMAIN = os.environ.get("BIODB_DOMAIN", "127.0.0.1")

POOL_MIN_SIZE = int(os.environ.get("BIODB_POOL_MIN_SIZE", 1))
POOL_MAX_SIZE = int(os.environ.get("BIODB_POOL_MAX_SIZE", 10))
if POOL_MIN_SIZE < 0 or POOL_MAX_SIZE < max(POOL_MIN_SIZE, 1):
    err = (
        f"Invalid pool sizes (min={POOL_MIN_SIZE}, max={POOL_MAX_SIZE}). "
        "BIODB_POOL_MAX_SIZE must be at least 1 and not below BIODB_POOL_MIN_SIZE."
    )
    raise ValueError(err)

# Rows fetched per round trip by postgres server-side cursors.
STREAM_ITERSIZE = 2000

STAGING_PREFIX = "biodb_stage_"

POSTGRES = "postgres"
SQLITE = "sqlite"
DBTYPES = (POSTGRES, SQLITE)
