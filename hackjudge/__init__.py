"""
hackjudge - lifecycle and confidential score aggregation core for hackathon judging.
"""

__version__ = "1.0.0"
