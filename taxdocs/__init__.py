"""
taxdocs: financial document classification and Australian dividend
statement parsing.
"""
__version__ = "1.0.0"
