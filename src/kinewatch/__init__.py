"""kinewatch library package."""

from .assembler import assemble_curve, extract_curve
from .engine import KinewatchEngine, media_id_from_url
from .errors import KinewatchError, SourceUnavailableError, SourceUnparseableError
from .path_grammar import parse_path
from .rate import RateConfig, map_rate, normalize_config
from .sampler import sample_curve
from .scheduler import RefreshScheduler, retry_delay_ms

__all__ = [
    "KinewatchEngine",
    "KinewatchError",
    "RateConfig",
    "RefreshScheduler",
    "SourceUnavailableError",
    "SourceUnparseableError",
    "assemble_curve",
    "extract_curve",
    "map_rate",
    "media_id_from_url",
    "normalize_config",
    "parse_path",
    "retry_delay_ms",
    "sample_curve",
]
