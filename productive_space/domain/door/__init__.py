"""Door access links"""
