"""
Business logic layer: permissions, audit trail and domain services.
"""
