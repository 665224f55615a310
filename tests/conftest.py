import os
import tempfile

# keep test runs out of the real logs/ folder
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="factionwatch-logs-"))
