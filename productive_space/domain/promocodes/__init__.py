"""Promo codes"""
