"""Focus/break phase-cycling countdown timer."""
