import os
import tempfile

# Settings are read once at import time, so the environment must be in place
# before any skillsense module is imported.
_TMP = tempfile.mkdtemp(prefix="skillsense-tests-")
os.environ["DATABASE_PATH"] = os.path.join(_TMP, "skillsense.db")
os.environ["STORAGE_ROOT"] = os.path.join(_TMP, "storage")
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["ANALYTICS_ENABLED"] = "0"
os.environ.setdefault("OPENAI_API_KEY", "test-key")
