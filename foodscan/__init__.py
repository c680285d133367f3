"""
FoodScan - product ingestion and evaluation pipeline.

Takes raw product input (barcode lookup or OCR label text), normalizes it,
evaluates it against the user's dietary preferences and persists it.
"""

__version__ = "1.0.0"
