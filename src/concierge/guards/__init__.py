from .input_guard import sanitize_input  # noqa: F401
from .rate_limiter import RateLimiter  # noqa: F401
