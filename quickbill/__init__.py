"""QuickBill: retail bill generation with multi-backend persistence."""

__version__ = "1.0.0"
