import azure.functions as func
from dotenv import load_dotenv

from shared.config import load_settings

# Load local .env for dev convenience (local.settings.json is handled by Functions host)
load_dotenv()

# Built once per worker process and handed to every handler.
settings = load_settings()

app = func.FunctionApp()

# Import routes so they register with the shared app instance.
import expenses_endpoints  # noqa: E402,F401
import export_endpoints  # noqa: E402,F401
import pdf_endpoints  # noqa: E402,F401
import sync_endpoints  # noqa: E402,F401
import health_endpoints  # noqa: E402,F401
