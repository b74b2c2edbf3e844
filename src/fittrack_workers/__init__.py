"""FitTrack workers: derived aggregates over workout/set data."""
