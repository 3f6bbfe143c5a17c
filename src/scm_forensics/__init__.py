"""SCM Forensics - incremental mining of Git history into per-file statistics."""

__version__ = "0.1.0"
