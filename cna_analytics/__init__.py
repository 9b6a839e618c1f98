"""CNA Analytics: Capability Needs Analysis workforce analytics engine."""
