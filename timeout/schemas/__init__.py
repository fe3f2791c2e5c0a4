"""
Request schemas for the community API.
"""
