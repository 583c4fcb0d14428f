"""Multi-stage VAT figure extraction with graceful degradation."""

__version__ = "0.1.0"
