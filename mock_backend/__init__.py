"""In-memory stand-in for the cafe backend"""
