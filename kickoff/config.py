"""Configuration and settings for KickOff AI."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"
STORE_PATH = Path(os.getenv("KICKOFF_STORE_PATH", str(DATA_DIR / "kickoff.db")))

# Ensure data directory exists
DATA_DIR.mkdir(exist_ok=True)

# Gemini API configuration
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
GEMINI_API_BASE_URL = os.getenv("GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")

# Timeouts (seconds). Degraded mode runs without web search.
NORMAL_TIMEOUT_SECONDS = float(os.getenv("NORMAL_TIMEOUT_SECONDS", "90"))
DEGRADED_TIMEOUT_SECONDS = float(os.getenv("DEGRADED_TIMEOUT_SECONDS", "25"))
CONNECT_TIMEOUT_SECONDS = 10

# Thinking budgets used when thinking mode is on
SPORTS_DATA_THINKING_BUDGET = 15000
PREDICTION_THINKING_BUDGET = 10000
ANALYSIS_THINKING_BUDGET = 15000

# Silent refresh
REFRESH_INTERVAL_SECONDS = int(os.getenv("REFRESH_INTERVAL_SECONDS", "60"))
REFRESH_TICK_SECONDS = 1.0

# Local state
HISTORY_LIMIT = 20
NOTIFICATION_TTL_SECONDS = 6.0
MAX_VISIBLE_NOTIFICATIONS = 3
INITIAL_BALANCE = 1000.00

# One-shot location lookup (IP based)
GEOLOCATION_URL = os.getenv("GEOLOCATION_URL", "http://ip-api.com/json")
GEOLOCATION_TIMEOUT_SECONDS = 5

# Key-value store namespace
HISTORY_KEY = "kickoff_history"
FAVORITES_KEY = "kickoff_favorites"
BALANCE_KEY = "kickoff_balance"
BET_HISTORY_KEY = "kickoff_bet_history"

# Leagues requested from the model
LEAGUES = ["Serie A", "Premier League", "La Liga", "Bundesliga"]

# Default odds for the goal/no-goal markets when the model omits them
DEFAULT_GG_ODDS = 1.85
DEFAULT_NG_ODDS = 1.90
