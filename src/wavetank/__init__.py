"""wavetank: interactive 2D scalar wave tank (FDTD) with reflecting walls."""

__version__ = "0.1.0"
