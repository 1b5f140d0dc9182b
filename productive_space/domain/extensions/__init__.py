"""Booking extensions with live seat re-checks"""
