"""HTTP cross-cutting concerns: problem+json shaping and request ids."""
