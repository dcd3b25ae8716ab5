"""Record-layer hooks: concatenated columns, password fields, HTTP auth helpers."""
__version__ = "0.1.0"
