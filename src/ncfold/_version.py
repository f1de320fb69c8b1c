__version__ = version = "0.3.0"
