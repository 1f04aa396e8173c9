"""HauzFlow realtime and messaging backend."""
