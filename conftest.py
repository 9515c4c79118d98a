import os

# Load .env.test for tests when present (e.g. a DATABASE_URL for the SQL store tests)
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# The app under test runs on the in-memory record store without rate limits
os.environ["RECORD_STORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with the env vars above
get_settings.cache_clear()
