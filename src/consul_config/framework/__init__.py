"""
Framework layer: the configuration engine.
"""
