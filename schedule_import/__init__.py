"""Class-schedule import pipeline.

Turns uploaded delimited files and spreadsheet grids into schedule items,
resolving subjects against the catalog and recording import provenance.
"""

__version__ = "0.1.0"
