"""Booking dashboard: tabs, refunds and store credit"""
