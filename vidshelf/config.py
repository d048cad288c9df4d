import os
from dotenv import load_dotenv

load_dotenv()

# Use absolute path so the store is found regardless of the working directory
BASE_DIR = os.path.dirname(os.path.abspath(__file__)) # vidshelf/
PROJECT_ROOT = os.path.dirname(BASE_DIR) # project root

class Settings:
    # Netlify functions proxy in front of the YouTube Data API
    SERVER_URL = os.getenv("SERVER_URL", "https://silly-volhard-192918.netlify.app/.netlify/functions")

    # If set, talk to the YouTube Data API directly instead of the proxy
    YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY")

    # Canned responses, no network
    MOCK_MODE = os.getenv("MOCK_MODE", "False").lower() == "true"

    STORAGE_FILE = os.getenv("STORAGE_FILE", os.path.join(PROJECT_ROOT, "vidshelf_storage.json"))

    REGION_CODE = os.getenv("REGION_CODE", "kr")
    SAFE_SEARCH = os.getenv("SAFE_SEARCH", "strict")
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    MAX_SAVABLE_VIDEOS_COUNT = 100
    MAX_RENDER_VIDEOS_COUNT = 10
    MAX_KEYWORD_HISTORY_COUNT = 3

    LOCAL_STORAGE_VIDEO_LIST_KEY = "local-storage-video-list-key"
    LOCAL_STORAGE_KEYWORD_HISTORY_KEY = "local-storage-keyword-history-key"

settings = Settings()
