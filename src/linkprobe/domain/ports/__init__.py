from .cancellation import CancellationTokenPort
from .http_probe import HttpProbePort
from .link_validator import LinkValidatorPort
from .result_cache import ResultCachePort

__all__ = [
    "CancellationTokenPort",
    "HttpProbePort",
    "LinkValidatorPort",
    "ResultCachePort",
]
