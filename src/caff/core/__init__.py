"""Classification, durations, UI and process supervision for caff."""
