"""Core migration analysis: compatibility engine, dependency tree, and planning."""
