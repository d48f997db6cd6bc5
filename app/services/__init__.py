"""
Services Module

Business logic kept out of the route handlers.

Services:
    - dialect: MySQL-style query shim over the async SQLAlchemy engine
    - menu_import: Excel / CSV menu sheet parsing
"""
