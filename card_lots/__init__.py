"""Card Lots - group scanned card photos into lots and export eBay listings."""

__version__ = "0.1.0"
