"""Client-side account resolution and instruction assembly for the SSL v2 AMM."""

__version__ = "0.1.0"
