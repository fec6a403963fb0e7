"""Device-side models, line parser and byte-stream links."""
