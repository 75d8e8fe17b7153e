"""Bilingual receipt and quotation toolkit for the Tripoli Karting Race."""

__version__ = "0.1.0"
