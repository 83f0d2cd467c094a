"""
ecom-synth
Data Generation Module
"""
from .generators import DataGenerator, default_stages, generate
from .sampling import Sampler

__all__ = ["DataGenerator", "Sampler", "default_stages", "generate"]
