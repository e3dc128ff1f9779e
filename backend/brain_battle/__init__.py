"""Brain Battle study-notes engine."""
