"""PDFWrap: secure PDF letter production from queued database records."""

__version__ = "1.0.0"
