"""
OrbitFund backend: crowdfunding missions, approvals and media storage.
"""

__version__ = "0.1.0"
