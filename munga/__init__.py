"""INTELIGENT MUNGA - AI analyst terminal core"""

__version__ = "4.0.5"
