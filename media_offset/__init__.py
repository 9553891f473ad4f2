"""Playback start offset reconciliation for Media Services assets."""
