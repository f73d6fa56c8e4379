"""Contact app: messages sent from the public site and their replies."""
