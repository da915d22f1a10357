"""
Inspiration module - the mixed case study and evidence feed.
"""
