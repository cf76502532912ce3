"""
HackWknd Modules
================

Flask blueprint modules that make up the application.
"""

__all__ = ['campaigns', 'dashboard', 'email', 'hackathons', 'registrations']
