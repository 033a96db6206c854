"""Read-side inbox endpoints: channels, conversations, contacts."""
