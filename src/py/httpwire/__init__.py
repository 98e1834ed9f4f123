from .http.headers import Headers  # NOQA: F401
from .http.body import BodyStream  # NOQA: F401
from .http.model import SyntheticRequest, SyntheticResponse  # NOQA: F401
from .http.options import RequestOptions, normalizeRequestArgs  # NOQA: F401
from .coordinator import CallState, Coordinator  # NOQA: F401
from .client import Handle, request, get  # NOQA: F401
from .interceptor import CallHandle, Interceptor  # NOQA: F401
from .wiring import Wiring, wire, unwire, wired  # NOQA: F401
from .server import serve  # NOQA: F401
from .errors import WireError, CallSetupError, CallStateError  # NOQA: F401


# EOF
