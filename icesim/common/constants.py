"""
Shared numeric constants.
"""

DEFAULT_SCOOP_PROBABILITIES = (0.6, 0.3, 0.1)  # P(1 scoop), P(2), P(3)
