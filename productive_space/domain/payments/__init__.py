"""Fee arithmetic, payment settings and HitPay sessions"""
