"""fundsync - reconcile a wishlist link into a repository's FUNDING.yml."""

__version__ = "0.1.0"
