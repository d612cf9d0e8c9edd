from .profiles import (
    DEFAULT_THRESHOLDS,
    PROFILES,
    LoadProfile,
    Stage,
    Threshold,
    evaluate_thresholds,
    get_profile,
    parse_duration,
)

__all__ = [
    'DEFAULT_THRESHOLDS',
    'PROFILES',
    'LoadProfile',
    'Stage',
    'Threshold',
    'evaluate_thresholds',
    'get_profile',
    'parse_duration',
]
