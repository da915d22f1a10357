"""
Notifications module - admin bulk email and scheduled digests.
"""
