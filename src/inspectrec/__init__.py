"""inspectrec - vehicle inspection records kept in a flat file."""

__version__ = "0.1.0"
