"""Projectify - build financial model workbooks from compact code records.

This package holds the code-record pipeline: parsing, collection building,
validation, and execution against an Excel workbook.
"""

__version__ = "0.4.0"
