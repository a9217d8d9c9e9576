"""
Shipping Rates Package

Home delivery rate quotation for a commerce carrier integration.
Resolves a shipment price using Destination → Weight Tier → Price lookups.
"""

__version__ = "1.0.0"
