from os import getenv
from .utils.io import DEFAULT_ENCODING  # NOQA: F401

# When strict, calls that can't be intercepted raise `CallSetupError` instead
# of being logged and left pending forever.
STRICT: bool = getenv("HTTPWIRE_STRICT", "0") == "1"

LOG_CALLS: bool = getenv("HTTPWIRE_LOG_CALLS", "0") == "1"

# One of Debug, Info, Warning, Error, Exception
LOG_LEVEL: str = getenv("HTTPWIRE_LOG_LEVEL", "Info")

# Host assumed for calls that only give a path
HOST: str = getenv("HTTPWIRE_HOST", "localhost")

# EOF
