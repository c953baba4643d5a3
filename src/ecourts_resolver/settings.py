import os

from dotenv import load_dotenv

load_dotenv()

ECOURTS_PROVIDER = os.environ.get("ECOURTS_PROVIDER", "official")  # official | manual | third_party
ECOURTS_API_KEY = os.environ.get("ECOURTS_API_KEY", "")
ECOURTS_BASE_URL = os.environ.get("ECOURTS_BASE_URL", "")
ECOURTS_TIMEOUT = os.environ.get("ECOURTS_TIMEOUT", "30")  # seconds
ECOURTS_RETRY_ATTEMPTS = os.environ.get("ECOURTS_RETRY_ATTEMPTS", "2")
ECOURTS_PORTAL_URL = os.environ.get("ECOURTS_PORTAL_URL", "")

SUREPASS_API_KEY = os.environ.get("SUREPASS_API_KEY", "")
LEGALKART_API_KEY = os.environ.get("LEGALKART_API_KEY", "")
