"""
Analytics module - admin dashboard figures and CSV exports.
"""
