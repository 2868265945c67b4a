"""Domain layer for food photo analysis.

Holds the typed errors shared by the inference, application and API layers.
"""
