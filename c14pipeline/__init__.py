"""
c14 pipeline: cleaning and merging of radiocarbon date lists.
"""

__version__ = "0.3.0"
