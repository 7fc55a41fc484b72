"""
Adapters - clock, click stores.
"""
