"""Click commands for types-publisher."""
