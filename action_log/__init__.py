"""Action log service: batching client, file-per-stream store, retention sweeper."""
