"""Constants for news sources."""

# NewsAPI
NEWSAPI_BASE_URL = "https://newsapi.org/v2"
NEWSAPI_EVERYTHING_PATH = "/everything"
NEWSAPI_API_KEY_HEADER = "X-Api-Key"
NEWSAPI_MAX_PAGE_SIZE = 100
NEWSAPI_DEFAULT_TIMEOUT_SECONDS = 30.0
NEWSAPI_DEFAULT_DAYS_BACK = 7
NEWSAPI_LANGUAGE = "en"
NEWSAPI_SORT_BY = "publishedAt"
NEWSAPI_SEARCH_IN = "title,description"

# Title NewsAPI uses for articles withdrawn by the publisher
NEWSAPI_REMOVED_TITLE = "[Removed]"

# Error codes from NewsAPI error bodies, mapped by prefix
NEWSAPI_AUTH_CODE_PREFIX = "apiKey"
NEWSAPI_RATE_LIMITED_CODE = "rateLimited"
NEWSAPI_VALIDATION_CODE_PREFIXES: tuple[str, ...] = ("parameter", "source")

# Source identifiers
SOURCE_NEWSAPI = "newsapi"

# Categories attached to every upstream article
DEFAULT_ARTICLE_CATEGORIES: tuple[str, ...] = ("rwa", "crypto")

USER_AGENT = "rwa-news/0.1"
