"""Application services built on the performance library."""
