"""State layer.

This package is the single source of truth for how inbound stream events
are folded into the three locally mirrored slices.
"""
