"""Dataset mention detection and TEI annotation for scholarly documents."""

__version__ = "0.1.0"
