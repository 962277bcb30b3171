"""
Prevoyance - Swiss Retirement Planning Engine

Computes first-pillar (AVS) rents from the official benefit scale,
aggregates second-pillar (LPP) pension-fund accounts, and projects
third-pillar (3a/3b) savings for a household.
"""

__version__ = "0.1.0"
