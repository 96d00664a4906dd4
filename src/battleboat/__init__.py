"""Battleboat: a Battleship game engine with a probability-driven computer opponent."""
