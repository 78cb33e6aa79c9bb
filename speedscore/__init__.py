"""
SpeedScore: client toolkit for the SpeedScore speedgolf platform

This package provides a REST client for the SpeedScore backend, the tournament
day-offset scheduling model, scorecard display helpers, a command-line
interface and a small web app for public tournament views.
"""

__version__ = "0.1.0"
__author__ = "SpeedScore Team"
