"""
Rugplay Coin Analyzer

Analytics and risk-scoring engine for coins traded on Rugplay.
"""

__version__ = "0.1.0"
