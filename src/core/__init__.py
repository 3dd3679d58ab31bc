"""Core domain package for wikiburst.

Core contains edit windows, the window store and burst detection without any
feed, Wikidata or Telegram specific code, keeping the business logic portable.
"""
