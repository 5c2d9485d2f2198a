"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# OpenAI (primary completion service). When set, agents use OpenAI instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# Hugging Face router chat (fallback when OPENAI_API_KEY is not set or OpenAI returns nothing)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# Completion requests
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "512"))
LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0"))

# API timeouts (seconds)
LLM_API_TIMEOUT: float = 60.0
TOOLS_HTTP_TIMEOUT: float = 15.0

# Open-Meteo weather API (no key required)
OPEN_METEO_GEOCODE: str = "https://geocoding-api.open-meteo.com/v1/search"
OPEN_METEO_FORECAST: str = "https://api.open-meteo.com/v1/forecast"

# Wikipedia search (encyclopedia lookup for climate research)
WIKIPEDIA_API: str = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_PAGE_URL: str = "https://en.wikipedia.org/wiki/"

# Web search (DuckDuckGo via ddgs). Search tool is shared, so calls are spaced out.
SEARCH_MAX_RESULTS: int = 5
SEARCH_MIN_INTERVAL: float = float(os.getenv("SEARCH_MIN_INTERVAL", "1.0"))

# Conversation: number of previous turns passed to the classifier / location extractor
HISTORY_WINDOW: int = 3

# Turn processing deadlines (seconds)
SPECIALIST_TIMEOUT: float = float(os.getenv("SPECIALIST_TIMEOUT", "20"))
TURN_TIMEOUT: float = float(os.getenv("TURN_TIMEOUT", "90"))

# "abort": any specialist failure aborts a water-shortage turn.
# "degrade": synthesize with whatever specialists succeeded.
SPECIALIST_FAILURE_POLICY: str = (
    os.getenv("SPECIALIST_FAILURE_POLICY", "abort").strip().lower() or "abort"
)

# Retries for transient faults on external calls (timeouts, connection errors, 429, 5xx)
EXTERNAL_RETRIES: int = int(os.getenv("EXTERNAL_RETRIES", "2"))
RETRY_BACKOFF_BASE: float = float(os.getenv("RETRY_BACKOFF_BASE", "0.25"))

# Server-side sessions: idle sessions are evicted after SESSION_IDLE_TTL seconds;
# beyond SESSION_MAX_COUNT the least recently used session is dropped.
SESSION_IDLE_TTL: float = float(os.getenv("SESSION_IDLE_TTL", "3600"))
SESSION_MAX_COUNT: int = int(os.getenv("SESSION_MAX_COUNT", "1000"))
