"""fdw-catalog: remote server provisioning over foreign data wrappers."""

__version__ = "0.4.0"
