"""Core building blocks shared by all fleet-commons features."""
