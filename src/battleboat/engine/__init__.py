"""Board, fleet and game-session model."""
