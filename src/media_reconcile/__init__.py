"""Media Reconcile.

Reconciles on-disk media files with canonical season/episode metadata and
stages batched rename and recognition plans for review before any file is
touched.
"""

try:
    from ._version import __version__
except ImportError:
    # Fallback for development installations without version file
    __version__ = "0.0.0+unknown"
