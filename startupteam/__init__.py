"""
StartupTeam
Connects startup founders with members who want to join early-stage teams.

Architecture:
- MongoDB: users, profiles, startups, roles, applications, saved startups
- JWT access + refresh tokens, Google / LinkedIn OAuth login
- Twilio WhatsApp notifications, Cloudinary image storage
"""

__version__ = "1.0.0"
