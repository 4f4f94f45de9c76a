"""
Business services: entitlements, generation, and creation storage.
"""
