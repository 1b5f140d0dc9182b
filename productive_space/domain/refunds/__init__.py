"""Admin refund review"""
