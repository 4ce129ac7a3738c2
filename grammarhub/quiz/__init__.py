"""Question catalog and quiz engine."""
