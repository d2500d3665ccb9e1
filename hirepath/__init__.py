"""
HirePath
Job application tracking API.

Architecture:
- MongoDB: users (with KPI settings and cached stats) and job applications
- JWT sessions for password and Google sign-in
- Browser extension posts scraped jobs to the same API
"""

__version__ = "1.0.0"
