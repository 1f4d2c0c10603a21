"""
Domain layer - deployment synchronization logic
"""
