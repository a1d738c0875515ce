"""
Domain layer - Gateway entities, the GPS point codec and exceptions.
"""
