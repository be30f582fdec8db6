from typing import Any

# Type aliases for better clarity
DocumentData = dict[str, Any]
QueryParams = dict[str, str]

# Constants
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
