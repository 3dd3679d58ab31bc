"""Adapters that connect the core to the recent-changes feed, Wikidata and notifiers."""
