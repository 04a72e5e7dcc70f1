"""E-commerce backend with affiliate network, commissions and rewards"""

__version__ = "1.0.0"
