"""Terminal front end for FocusWriter."""
