"""clix core — version aggregation, rendering, parsing and the CLI lifecycle."""
