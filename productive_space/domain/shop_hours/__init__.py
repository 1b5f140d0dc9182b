"""Outlet operating hours and closures"""
