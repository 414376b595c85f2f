"""Adapters exposing third-party connections as callable-statement connections."""

from procspec.adapters.dbapi import DBAPIConnection, DBAPIPreparedCall

__all__ = ("DBAPIConnection", "DBAPIPreparedCall")
