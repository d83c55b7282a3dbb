"""Moodreel: streaming LLM recommendations matched against a movie catalog."""
