"""
Adapters layer - CLI and configuration surfaces
"""
