"""ODS indicator export package.

This package fetches the Sustainable Development Goal (ODS) indicators
published by the Cidades Sustentáveis platform for a single city, reshapes
them into one row per indicator and writes the result to a spreadsheet.
"""

__version__ = "0.1.0"
