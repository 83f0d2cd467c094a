"""
ecom-synth
Synthetic E-Commerce Social-Selling Funnel Data Generator
"""
from .data.generators import DataGenerator, generate

__version__ = "1.0.0"

__all__ = ["DataGenerator", "generate", "__version__"]
