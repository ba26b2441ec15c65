"""snapvault - WhatsApp image archiver and gallery API"""

__version__ = "0.1.0"
