"""
Mortar Stager

Quantile-staged segmentation of bonding material (mortar) in photographed
surfaces, using a lightness/whiteness score and empirical-CDF thresholds.
"""

__version__ = "0.1.0"
__author__ = "Mortar Stager Team"
