"""Location pricing"""
