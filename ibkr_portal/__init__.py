"""
ibkr-portal: Interactive Brokers Client Portal Gateway actions and poll trigger.
"""

__version__ = "0.1.0"
