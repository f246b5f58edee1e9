"""Two-player memory duel against an opponent that remembers what it saw."""
