"""
TimeOut services.
"""
