"""Pizza counter point-of-sale: cart, order submission, status tracking and sales reports."""

__version__ = "0.1.0"
