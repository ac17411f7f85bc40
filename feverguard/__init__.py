"""Febrile neutropenia risk evaluation core.

This package holds the decision logic for chemotherapy fever monitoring:
decoding wearable sensor frames, classifying fever and neutropenia, and
composing both verdicts into a de-duplicated clinical alert.
"""

__version__ = "0.1.0"
