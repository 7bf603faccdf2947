"""Eventrouter core — position cursor, change router, metrics, checkpoint, watcher."""
