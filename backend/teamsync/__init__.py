"""
TeamSync - live-view synchronization and meeting reminder engine.
"""
__version__ = "1.0.0"
