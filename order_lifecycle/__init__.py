"""Order status lifecycle service for the fleet admin portal."""

__version__ = "0.1.0"
