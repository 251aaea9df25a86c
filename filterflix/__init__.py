"""
FilterFlix: movie discovery across streaming services.
"""
