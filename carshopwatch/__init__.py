"""CarShopWatch: user-activity anomaly monitoring for the CarShop backend."""

__version__ = "0.1.0"
