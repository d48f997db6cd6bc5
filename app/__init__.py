"""
                QR Menu Platform

Backend for QR-code restaurant menus: restaurants manage menus,
categories and guest feedback through an admin API, guests browse
the public menu and leave ratings.

Author: Your Name
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Your Name"
