"""Review consensus and reputation."""
