"""
Authentication application.

Owns the user account that every notification is addressed to. The
platform's roster data (role, section, registration number) lives on the
user record so the notification engine can look up cohorts and recipients.

Usage:
    from authentication.models import User, UserRole
"""
