"""Admin user management"""
