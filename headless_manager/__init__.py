"""
Fika Headless Manager.

Keeps the SPT headless client running: validates the install, checks the
backend, launches the game and restarts it whenever it exits.
"""
