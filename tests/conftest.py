import os

# Apply the offline/deterministic env defaults that test_api.py declares before
# any test module imports app.core.config (settings are read once at import).
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("LLM_ENABLED", "0")
os.environ.setdefault("ADZUNA_APP_ID", "")
os.environ.setdefault("ADZUNA_APP_KEY", "")
