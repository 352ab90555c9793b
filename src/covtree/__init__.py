"""covtree — console coverage tree and weighted summary for JaCoCo data."""

__version__ = "0.1.0"
