"""nugetroadmap command-line interface."""
