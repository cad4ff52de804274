# rat/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
NYC_APP_TOKEN = os.getenv("NYC_APP_TOKEN", "")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# Runtime parameters
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "15"))
CONCURRENCY = int(os.getenv("CONCURRENCY", "20"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# URLs
INSPECTION_FEED_URL = "https://data.cityofnewyork.us/resource/43nn-pn8j.json"
PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"

# Persistence
FAVORITES_KEY = "RAT_APP_Favorites"
RECENTS_KEY = "RAT_APP_Recents"
RECENTS_LIMIT = 5
STORE_PATH = os.getenv("RAT_STORE_PATH", "rat_store.json")

# File names
INPUT_CSV = os.getenv("INPUT_CSV", "restaurants.csv")
OUTPUT_CSV = os.getenv("OUTPUT_CSV", "restaurant_grades.csv")
