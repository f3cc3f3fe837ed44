"""Sample applications built on wirebind."""
