"""Runtime configuration and backend connections."""
