"""Call chart community backend: submission moderation and publication."""
