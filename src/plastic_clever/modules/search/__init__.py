"""
Search module - free-text search over public content.
"""
