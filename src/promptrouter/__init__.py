"""promptrouter: prompt routing decision engine."""
