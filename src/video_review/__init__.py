"""Terminal UI for reviewing S3-hosted videos with accept/reject labels."""

__version__ = "0.1.0"
