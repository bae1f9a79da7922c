"""Secret Santa organizer: pairing generator, share links and HTTP backend."""
