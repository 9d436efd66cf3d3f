"""
URL builders for the App Store and Google Play sources.

Builders are pure: they validate required arguments (raising
InvalidArgumentError) and return a URL string.
"""

from appscout.endpoints import appstore, googleplay

__all__ = ["appstore", "googleplay"]
