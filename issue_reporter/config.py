import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))

# Per-file cap enforced while streaming uploads to disk
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", 100 * 1024 * 1024))

TICKET_PREFIX = os.getenv("TICKET_PREFIX", "IRS")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Local slot for the wizard's "save draft" snapshot
DRAFT_PATH = os.getenv(
    "DRAFT_PATH",
    os.path.join(os.path.expanduser("~"), ".issue_reporter", "issueFormDraft.json"),
)
