"""Client that serves objective evaluations to HyperMapper over process pipes."""

__version__ = "0.1.0"
