"""Domain logic: resource typing, remote status client, store and reconciler."""
