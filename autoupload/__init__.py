"""Mirror local workspace changes to an SFTP or FTP server."""

__version__ = "0.1.0"

__all__ = ["__version__"]
