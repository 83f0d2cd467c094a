"""
ecom-synth
Configuration Module
"""
from .settings import Settings, get_settings
from .tables import ScaleProfile, SynthConfig, get_synth_config

__all__ = [
    "Settings",
    "get_settings",
    "ScaleProfile",
    "SynthConfig",
    "get_synth_config",
]
