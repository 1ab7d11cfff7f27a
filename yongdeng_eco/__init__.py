"""Backend for the Yongdeng ecology visualization: gridcode map queries, WKT geometry and user authentication."""

__version__ = "0.1.0"